"""Radio station lifecycle: deploy, status, update, backup, logs, info, remove."""
from .backup import BackupManager
from .bulk import BulkResult
from .deploy import RadioDeployer
from .info import StationInfo
from .logs import LogViewer
from .remove import RemovalManager
from .status import StatusReporter
from .update import StationUpdater

__all__ = [
    'BackupManager',
    'BulkResult',
    'LogViewer',
    'RadioDeployer',
    'RemovalManager',
    'StationInfo',
    'StationUpdater',
    'StatusReporter',
]
