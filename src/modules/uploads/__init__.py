from src.modules.uploads.staging import StagedUpload, UploadStager, is_temp_filename

__all__ = ["StagedUpload", "UploadStager", "is_temp_filename"]
