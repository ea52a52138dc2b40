import logging

from fragsmart.utils.mixins import YAMLFileMixin

logger = logging.getLogger(__name__)


class YAMLFile(YAMLFileMixin):
    """
    A class for handling YAML configuration files.

    Reading is provided by YAMLFileMixin.
    """

    def __init__(self, filename):
        """
        Initialize YAMLFile with a filename.

        Args:
            filename (str): Path to the YAML file to be processed.
        """
        self.filename = filename
