'''
Console and file logging with verbosity control for the property extraction
pipeline. Wraps the standard `logging` module with indentation levels,
optional ANSI colours and a per-process global instance.

@note File logging is enabled only if the environment variable PYLOGFILE is set to a non-zero value.
@note Coloured output is disabled if the environment variable PYLOGCOLORS is set to '0'.

-------------------------------------------------------
file        :   eigprops/common/flog.py
description :   Logger class used by the extractor, the device pool and the diagonalizer.
-------------------------------------------------------
'''

__all__         = [
    "Logger",
    "Colors",
    "get_global_logger",
]

import os
import re
import sys
import logging
import functools
import threading
from datetime import datetime
from typing import Optional

# keep third-party chatter out of our output
logging.getLogger("jax").setLevel(logging.WARNING)
logging.getLogger("numba").setLevel(logging.WARNING)

######################################################
#! COLORS
######################################################

class Colors:
    """
    ANSI colour codes for console output.
    """

    black   = "\033[30m"
    red     = "\033[31m"
    green   = "\033[32m"
    yellow  = "\033[33m"
    blue    = "\033[34m"
    white   = "\033[0m"  # reset

    _MAPPING = {
        "black" : black,
        "red"   : red,
        "green" : green,
        "yellow": yellow,
        "blue"  : blue,
        "white" : white,
    }

    def __init__(self, color: str):
        self.color = color

    def __str__(self) -> str:
        return Colors._MAPPING.get(self.color, Colors.white)

    def __repr__(self) -> str:
        return str(self)

    def __call__(self, text: str) -> str:
        return f"{self}{text}{Colors.white}"

# CSI sequences: ESC [ ... m
_ansi_escape = re.compile(r'\x1b\[[0-9;]*m')

class StripAnsiFormatter(logging.Formatter):
    def format(self, record):
        msg = super().format(record)
        return _ansi_escape.sub('', msg)

######################################################
#! LOGGER
######################################################

ENV_LOGGER_FILE     = 'PYLOGFILE'
ENV_LOGGER_COLORS   = 'PYLOGCOLORS'

class Logger:
    """
    Logger class for handling console and file logging with verbosity control.
    """

    LEVELS = {
        logging.DEBUG   : 'debug',
        logging.INFO    : 'info',
        logging.WARNING : 'warning',
        logging.ERROR   : 'error'
    }

    LEVELS_R = {v: k for k, v in LEVELS.items()}

    def __init__(self,
                name            : str           = "eigprops",
                logfile         : Optional[str] = None,
                lvl             : int           = logging.INFO,
                append_ts       : bool          = False,
                use_ts_in_cmd   : bool          = False):
        """
        Initialize the logger instance.

        Args:
            name (str):
                Name of the underlying `logging` logger.
            logfile (str):
                Name of the log file (without extension). Only used when PYLOGFILE is set.
            lvl (int or str):
                Logging level (default: logging.INFO).
            append_ts (bool):
                Whether to append a timestamp to the log file name (default: False).
            use_ts_in_cmd (bool):
                Whether to use a timestamp in console output (default: False).
        """
        self.now                = datetime.now()
        self.now_str            = self.now.strftime("%d_%m_%Y_%H-%M_%S")
        self.lvl                = Logger.LEVELS_R.get(lvl, logging.INFO) if isinstance(lvl, str) else lvl
        self.has_colors         = sys.stdout.isatty() and os.environ.get(ENV_LOGGER_COLORS, '1') != '0'
        self.handler_added      = False

        self.logger             = logging.getLogger(name)
        self.logger.setLevel(self.lvl)
        self.logger.propagate   = False

        console_fmt = '%(asctime)s [%(levelname)s] %(message)s' if use_ts_in_cmd else '[%(levelname)s] %(message)s'

        for h in list(self.logger.handlers):
            self.logger.removeHandler(h)
            h.close()

        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(self.lvl)
        ch.setFormatter(logging.Formatter(console_fmt, datefmt="%d_%m_%Y_%H-%M_%S"))
        self.logger.addHandler(ch)

        if logfile is not None and os.environ.get(ENV_LOGGER_FILE, '0') != '0':
            self.logfile = logfile[:-4] if logfile.endswith('.log') else logfile
            self.logfile = self.logfile or self.now_str
            if append_ts:
                self.logfile += f'_{self.now_str}'
            self.configure("./log")
        else:
            self.logfile = None

    # --------------------------------------------------------------

    @staticmethod
    def colorize(txt: str, color: str):
        if not color or color.lower() == 'white':
            return str(txt)
        return str(Colors(color)) + str(txt) + Colors.white

    # --------------------------------------------------------------

    def configure(self, directory: str):
        """
        Attach a file handler writing to `directory/<logfile>.log`.

        Args:
            directory (str): Path to the directory where log files will be stored.
        """
        os.makedirs(directory, exist_ok=True)
        self.logfile = os.path.join(directory, f'{self.logfile}.log')

        if not self.handler_added:
            self._f_handler = logging.FileHandler(self.logfile, encoding='utf-8')
            self._f_handler.setLevel(self.lvl)
            self._f_handler.setFormatter(StripAnsiFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt="%d_%m_%Y_%H-%M-%S"))
            self.logger.addHandler(self._f_handler)
            self.handler_added = True
            self.info(f"Log file created: {self.logfile}")

    # --------------------------------------------------------------

    @staticmethod
    def print_tab(lvl=0):
        return '\t' * lvl + ('->' if lvl > 0 else '')

    @staticmethod
    def print(msg: str, lvl=0):
        return f"{Logger.print_tab(lvl)}{msg}"

    # --------------------------------------------------------------

    def _emit(self, level: int, msg: str, lvl: int, verbose: bool, color: Optional[str]):
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.log(level, Logger.print(msg, lvl))

    def info(self, msg: str, lvl=0, verbose=True, color=None):
        """
        Log an informational message if verbosity is enabled.

        Args:
            msg (str)       : Message to log.
            lvl (int)       : Indentation level.
            verbose (bool)  : Log if True (default: True).
        """
        self._emit(logging.INFO, msg, lvl, verbose, color)

    def debug(self, msg: str, lvl=0, verbose=True, color=None):
        self._emit(logging.DEBUG, msg, lvl, verbose, color)

    def warning(self, msg: str, lvl=0, verbose=True, color='yellow'):
        self._emit(logging.WARNING, msg, lvl, verbose, color)

    def error(self, msg: str, lvl=0, verbose=True, color='red'):
        self._emit(logging.ERROR, msg, lvl, verbose, color)

    # --------------------------------------------------------------

    def timing(self, func):
        """
        Decorator to measure and log (debug level) the execution time of functions.

        Use as:
            @log.timing
            def calculate_something(...):
                ...
        """

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            self.debug(f"Starting '{func.__name__}'...")
            start_time  = datetime.now()
            result      = func(*args, **kwargs)
            duration    = (datetime.now() - start_time).total_seconds()
            self.debug(f"Finished '{func.__name__}' in {duration:.4f} seconds.")
            return result
        return wrapper

######################################################

_G_LOGGER     = None
_G_LOGGER_PID = None
_G_LOCK       = threading.Lock()

def get_global_logger(**kwargs) -> Logger:
    """
    One Logger wrapper per process (PID), safe across threads/forks.

    Args:
        **kwargs: Arguments to pass to the Logger constructor.
        - name (str): Name of the logger (default: "eigprops").
        - lvl (int): Logging level (default: logging.INFO).
        - logfile (str or None): Path to a logfile (default: None).

    Example
    -------
        >>> log = get_global_logger()
        >>> log.info("Extracting DOS", lvl=1)
    """
    global  _G_LOGGER, _G_LOGGER_PID
    pid     = os.getpid()

    if _G_LOGGER is not None and _G_LOGGER_PID == pid:
        return _G_LOGGER

    with _G_LOCK:
        if _G_LOGGER is not None and _G_LOGGER_PID == pid:
            return _G_LOGGER

        _G_LOGGER = Logger(
            name            = kwargs.get("name",            "eigprops"),
            lvl             = kwargs.get("lvl",             logging.INFO),
            append_ts       = kwargs.get("append_ts",       True),
            use_ts_in_cmd   = kwargs.get("use_ts_in_cmd",   True),
            logfile         = kwargs.get("logfile",         None),
        )
        _G_LOGGER_PID = pid
        return _G_LOGGER

######################################################
