from dotenv import load_dotenv
import logging

from agora.models import ConflictThresholds
from agora.conflict_detector.detector import ConflictDetector


class Action:
    def __init__(self, thresholds=None):
        load_dotenv()
        self.thresholds = thresholds or ConflictThresholds.from_env()
        self.detector = ConflictDetector(self.thresholds)
        self.origin_column_name = None
        logging.debug(f"Action thresholds: {self.thresholds}")

    def set_origin_column_name(self, origin_column_name):
        """
        Initializes the column name to read values from.
        """
        self.origin_column_name = origin_column_name

    def default_action(self, row):
        return row.get(self.origin_column_name)
