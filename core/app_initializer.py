import sys
import os
from dataclasses import dataclass

from infrastructure.logging_service import enable_logging


@dataclass
class AppContext:
    config: object
    db: object
    documents: object
    statuses: object
    dashboard: object
    exports: object


def initialize_app(config_path: str = None, db_path: str = None) -> AppContext:
    """Initialise les composants communs de l'application (logging, config, base, services)."""
    app_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if app_root not in sys.path:
        sys.path.insert(0, app_root)

    enable_logging()

    # Imported after enable_logging so their module loggers get real handlers
    from infrastructure.configuration import ConfigurationService
    from infrastructure.dashboard_service import DashboardService
    from infrastructure.database import Database
    from infrastructure.document_service import DocumentService
    from infrastructure.export_service import ExportService
    from infrastructure.status_service import StatusService

    config = ConfigurationService(config_path) if config_path else ConfigurationService.get_instance()
    db = Database(db_path or config.get_database_path())
    return AppContext(
        config=config,
        db=db,
        documents=DocumentService(db, config),
        statuses=StatusService(db),
        dashboard=DashboardService(db),
        exports=ExportService(),
    )
