"""
Error handling infrastructure: catalog, recovery, handler and guides.
"""

from reliability.infrastructure.error.catalog import (
    CatalogEntry,
    catalog_entries,
    configuration_error,
    connection_error,
    create_error,
    document_processing_error,
    filesystem_error,
    get_catalog_entry,
    model_error,
    register_catalog_entry,
    system_error,
    validation_error,
    workflow_error,
)
from reliability.infrastructure.error.strategies import (
    ConfigurationFallbackStrategy,
    ConnectionRetryStrategy,
    DocumentProcessingFallbackStrategy,
    FileSystemRetryStrategy,
    ModelFallbackStrategy,
    WorkflowStepRetryStrategy,
    default_strategies,
)
from reliability.infrastructure.error.recovery import RecoveryManager
from reliability.infrastructure.error.handler import (
    ErrorHandler,
    ErrorHandlerConfig,
    HandlingStage,
)
from reliability.infrastructure.error.troubleshooting import (
    ResourceLink,
    TroubleshootingGuide,
    TroubleshootingGuideManager,
)

__all__ = [
    # Catalog
    "CatalogEntry",
    "catalog_entries",
    "configuration_error",
    "connection_error",
    "create_error",
    "document_processing_error",
    "filesystem_error",
    "get_catalog_entry",
    "model_error",
    "register_catalog_entry",
    "system_error",
    "validation_error",
    "workflow_error",

    # Recovery
    "ConfigurationFallbackStrategy",
    "ConnectionRetryStrategy",
    "DocumentProcessingFallbackStrategy",
    "FileSystemRetryStrategy",
    "ModelFallbackStrategy",
    "RecoveryManager",
    "WorkflowStepRetryStrategy",
    "default_strategies",

    # Handling
    "ErrorHandler",
    "ErrorHandlerConfig",
    "HandlingStage",

    # Guides
    "ResourceLink",
    "TroubleshootingGuide",
    "TroubleshootingGuideManager",
]
