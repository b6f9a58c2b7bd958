"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/steps/__init__.py

Built-in steps. Every concrete Step subclass defined here is registered under
'step/<key>' by classdepth.core.registry.load_entry_points().
--------------------------------------------------------------------------------
"""
