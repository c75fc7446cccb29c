from src.modules.maintenance.expiry import ExpirySweeper, delete_post_files, retention_cutoff
from src.modules.maintenance.reconciler import ImageReconciler

__all__ = ["ExpirySweeper", "ImageReconciler", "delete_post_files", "retention_cutoff"]
