"""
Exceptions raised by FlowMine when its inputs break their contract
"""


class FlowMineError(Exception):
    """Base class for all FlowMine errors"""


class EventLogError(FlowMineError, ValueError):
    """Raised for an event (or event table) missing a required field"""


class ReferenceFlowError(FlowMineError, ValueError):
    """Raised for an ideal flow that is empty or has empty/duplicate labels"""


class ConfigError(FlowMineError, ValueError):
    """Raised for configuration values outside their valid range"""
