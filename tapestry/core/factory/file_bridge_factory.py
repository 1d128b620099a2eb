"""
Factory for creating the file bridge.

The bridge is chosen once, by probing what the host offers, instead of
re-checking capabilities at every save.
"""

from tapestry.config import FileBridgeConfig
from tapestry.core.file_bridge.base import FileBridge, FilePicker
from tapestry.core.file_bridge.download import DownloadFileBridge
from tapestry.core.file_bridge.picker import PickerFileBridge
from tapestry.utils.exceptions import ConfigurationError
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class FileBridgeFactory:
    """Factory for creating file bridges from configuration and host capabilities."""

    @staticmethod
    def create(config: FileBridgeConfig, picker: FilePicker | None = None) -> FileBridge:
        """
        Create a file bridge.

        Args:
            config: File bridge configuration
            picker: Host file picker, if the host has one

        Returns:
            PickerFileBridge when a picker is available (mode "auto" or
            "picker"), DownloadFileBridge otherwise

        Raises:
            ConfigurationError: If mode is unknown, or "picker" without a picker
        """
        mode = config.mode
        if mode == "auto":
            mode = "picker" if picker is not None else "download"

        if mode == "picker":
            if picker is None:
                raise ConfigurationError("File bridge mode 'picker' requires a host file picker")
            logger.info("Using picker file bridge")
            return PickerFileBridge(picker=picker, indent=config.indent)
        elif mode == "download":
            logger.info(f"Using download file bridge ({config.downloads_dir})")
            return DownloadFileBridge(downloads_dir=config.downloads_dir, indent=config.indent)
        else:
            raise ConfigurationError(f"Unsupported file bridge mode: {config.mode}")
