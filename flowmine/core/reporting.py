#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Persisting analysis outputs: JSON summaries and CSV tables
"""

import os
import json
import logging
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def print_section_header(title: str, width: int = 80):
    """
    Print a formatted section header

    Args:
        title: Section title
        width: Width of header
    """
    print("\n" + "=" * width)
    print(f"{title.center(width)}")
    print("=" * width + "\n")


def _make_serializable(obj):
    """
    Make an object JSON serializable

    Args:
        obj: Input object

    Returns:
        JSON serializable version of the object
    """
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, (int, float, str, bool, type(None))):
        return obj
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, (list, tuple, set, frozenset)):
        items = sorted(obj) if isinstance(obj, (set, frozenset)) else obj
        return [_make_serializable(item) for item in items]
    elif isinstance(obj, dict):
        return {str(key): _make_serializable(value) for key, value in obj.items()}
    elif isinstance(obj, np.ndarray):
        return obj.tolist()

    # Default: convert to string
    return str(obj)


def save_metrics(
    metrics: Dict[str, Any],
    output_dir: Union[str, Path],
    filename: str = "metrics.json"
) -> Path:
    """
    Save metrics to JSON file

    Args:
        metrics: Dictionary of metrics to save
        output_dir: Output directory
        filename: Output filename

    Returns:
        Path to saved metrics file
    """
    output_dir = Path(output_dir)
    os.makedirs(output_dir, exist_ok=True)

    metrics_path = output_dir / filename
    with open(metrics_path, 'w') as f:
        json.dump(_make_serializable(metrics), f, indent=2)

    logger.info(f"Saved metrics to {metrics_path}")
    return metrics_path


def save_tables(tables: Dict[str, pd.DataFrame], output_dir: Union[str, Path]) -> Dict[str, Path]:
    """
    Save dataframes as CSV files named after their keys

    Args:
        tables: Mapping of table name to dataframe
        output_dir: Output directory

    Returns:
        Mapping of table name to written path
    """
    output_dir = Path(output_dir)
    os.makedirs(output_dir, exist_ok=True)

    paths = {}
    for name, df in tables.items():
        path = output_dir / f"{name}.csv"
        df.to_csv(path, index=False)
        paths[name] = path
        logger.debug(f"Saved {len(df)} rows to {path}")

    logger.info(f"Saved {len(paths)} tables to {output_dir}")
    return paths
