from panelflow.infrastructure.folder.folder_reader import FolderSnapshot, read_folder

__all__ = ["FolderSnapshot", "read_folder"]
