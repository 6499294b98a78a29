#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Logging setup for FlowMine CLI
"""

import logging
import warnings
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False, log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Setup logging and suppress warnings

    Args:
        debug: Whether to log at DEBUG level
        log_dir: Optional directory for a flowmine.log file

    Returns:
        Configured logger
    """
    level = logging.DEBUG if debug else logging.INFO

    # Create package logger
    logger = logging.getLogger("flowmine")
    logger.setLevel(level)

    # Avoid stacking handlers when called more than once
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "flowmine.log")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Suppress common warnings
    warnings.filterwarnings("ignore", category=FutureWarning)

    return logger
