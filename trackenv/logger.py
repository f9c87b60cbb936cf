import inspect
import logging
import os
from datetime import datetime
from typing import Literal


class Logger:
    """
    Singleton Logger class to log messages to the console and, once
    configured, to a dated log file. Each message is prefixed with the
    caller's file, line number and function name.
    """
    _instance = None  # Singleton instance

    def __new__(cls):
        """
        Create or return the singleton instance of the Logger class.

        Returns:
            Logger: Singleton instance of the Logger class.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self) -> None:
        """
        Initialize the logger with a console handler. File logging is
        switched on separately with `add_file_handler`.

        Returns:
            None
        """
        self.logger = logging.getLogger("trackenv")
        self.log_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        self.log_file_path = None

        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(self.log_format)
            self.logger.addHandler(console_handler)

    def add_file_handler(self, log_dir: str = "logs") -> str:
        """
        Attach a file handler writing to `<log_dir>/logs_YYYY-MM-DD.log`.
        Creates the directory if it doesn't exist. Calling it again with the
        same directory does not add a second handler.

        Args:
            log_dir (str): Directory for the log files.
        Returns:
            str: Path to the log file.
        """
        log_filename = datetime.now().strftime("logs_%Y-%m-%d.log")

        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        log_file_path = os.path.join(log_dir, log_filename)
        if self.log_file_path == log_file_path:
            return log_file_path

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(self.log_format)
        self.logger.addHandler(file_handler)
        self.log_file_path = log_file_path
        return log_file_path

    def log(self, level: Literal["debug", "info", "warning", "error", "critical"], message: str) -> None:
        """
        Log a message with the specified level, including context about the caller's file, line number, and function name.

        Args:
            level (Literal["debug", "info", "warning", "error", "critical"]): The log level.
            message (str): The message to log.
        Returns:
            None
        """
        frame = inspect.currentframe().f_back.f_back
        filename = os.path.basename(frame.f_code.co_filename)
        lineno = frame.f_lineno
        function_name = frame.f_code.co_name

        log_message = f"[{filename}:{lineno} ({function_name})] - {message}"

        level = level.lower()
        if level == "debug":
            self.logger.debug(log_message)
        elif level == "warning":
            self.logger.warning(log_message)
        elif level == "error":
            self.logger.error(log_message)
        elif level == "critical":
            self.logger.critical(log_message)
        else:
            self.logger.info(log_message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.log("debug", message)

    def info(self, message: str) -> None:
        """Log an info message."""
        self.log("info", message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.log("warning", message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.log("error", message)

    def critical(self, message: str) -> None:
        """Log a critical message."""
        self.log("critical", message)
