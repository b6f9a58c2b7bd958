"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/errors.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations


class ClassDepthError(Exception): ...


class ConfigError(ClassDepthError): ...


class RegistryError(ClassDepthError): ...


class ContractError(ClassDepthError): ...


class TransformError(ClassDepthError): ...


class NotTrainedError(ClassDepthError): ...


class ExecutionError(ClassDepthError): ...


class ArtifactError(ClassDepthError): ...


class BackendError(ClassDepthError): ...
