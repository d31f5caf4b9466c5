"""
Logging and run setup for the searchlight scripts.

Every module in the package logs through ``logging.getLogger(__name__)``; the
handlers live on the package logger ``fame_rsa`` configured here, so library
messages land in the same analysis log as the script's own.

Usage
-----
>>> from fame_rsa.logging_utils import setup_analysis
>>> config, output_dir, logger = setup_analysis(
...     "rsa_searchlight", Path("results"), __file__)
>>> logger.info("Processing s001")
"""

import logging
import os
import sys
import warnings
from datetime import datetime
from pathlib import Path

import numpy as np

from .io_utils import copy_script_to_results


LOGGER_NAME = 'fame_rsa'
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}


def _get_log_level_from_env():
    """
    Log level named by FAME_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR).

    Unset or unknown values give INFO. DEBUG adds the full config dump and
    per-block searchlight progress.
    """
    return _LEVELS.get(os.environ.get('FAME_LOG_LEVEL', 'INFO').upper(), logging.INFO)


def setup_logging(log_file=None, level=None, console=True):
    """
    (Re)configure the package logger.

    Parameters
    ----------
    log_file : str or Path, optional
        File to write (overwritten). Parent directories are created.
    level : int, optional
        Logging level; default from FAME_LOG_LEVEL
    console : bool, default=True
        Also echo to stdout

    Returns
    -------
    logging.Logger
        The ``fame_rsa`` logger, with handlers replaced and propagation off
    """
    if level is None:
        level = _get_log_level_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers = []
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='w'))
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def log_script_start(logger, script_path, config_dict=None):
    """
    Banner with the script name; the configuration goes to DEBUG.
    """
    rule = "=" * 80
    logger.info(rule)
    logger.info(Path(script_path).name)
    logger.info(rule)

    if config_dict is None:
        return

    logger.debug(f"Started: {datetime.now().strftime(LOG_DATEFMT)}")
    logger.debug(f"Random seed: {config_dict.get('RANDOM_SEED', 'N/A')}")
    logger.debug("Configuration:")
    for key, value in config_dict.items():
        logger.debug(f"  {key}: {value}")


def log_script_end(logger):
    """Closing banner with the completion time."""
    rule = "=" * 80
    logger.info(rule)
    logger.info(f"Completed: {datetime.now().strftime(LOG_DATEFMT)}")
    logger.info(rule)


def configure_warnings(suppress_warnings: bool = True) -> None:
    """
    Ignore FutureWarning and UserWarning when requested.

    RuntimeWarnings (e.g., from degenerate correlations) are never filtered.
    """
    if suppress_warnings:
        warnings.filterwarnings("ignore", category=FutureWarning)
        warnings.filterwarnings("ignore", category=UserWarning)


def setup_analysis(
    analysis_name: str,
    results_base: Path,
    script_file: str,
    extra_config: dict = None,
    suppress_warnings: bool = True
) -> tuple:
    """
    Prepare a batch run: output folder, log file, seed and script copy.

    Steps
    -----
    1. ``results_base/analysis_name`` is created (reruns reuse it)
    2. Logging to ``analysis.log`` there, plus stdout
    3. Warning filter per ``suppress_warnings``
    4. numpy seeded with CONFIG['RANDOM_SEED']
    5. The calling script is copied next to its outputs
    6. CONFIG + ``extra_config`` + OUTPUT_DIR is logged and returned

    Parameters
    ----------
    analysis_name : str
        Folder name for this run's log and script copy (e.g., "rsa_searchlight")
    results_base : Path
        Parent folder of all runs
    script_file : str
        The calling script (``__file__``)
    extra_config : dict, optional
        Script-specific values; override CONFIG entries of the same name
    suppress_warnings : bool, default=True
        Passed to ``configure_warnings``

    Returns
    -------
    config : dict
        Merged configuration (Path values kept as Path)
    output_dir : Path
    logger : logging.Logger
    """
    from .constants import CONFIG

    output_dir = Path(results_base) / analysis_name
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(output_dir / "analysis.log")
    configure_warnings(suppress_warnings)
    np.random.seed(CONFIG['RANDOM_SEED'])
    copy_script_to_results(Path(script_file), output_dir, logger)

    config = dict(CONFIG)
    config['OUTPUT_DIR'] = output_dir
    if extra_config is not None:
        config.update(extra_config)

    log_script_start(
        logger,
        script_file,
        {k: (str(v) if isinstance(v, Path) else v) for k, v in config.items()},
    )
    return config, output_dir, logger


__all__ = [
    'setup_logging',
    'log_script_start',
    'log_script_end',
    'configure_warnings',
    'setup_analysis',
]
