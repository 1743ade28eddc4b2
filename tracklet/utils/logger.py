import logging
import logging.handlers
import os
from datetime import date


class DynamicDailyFileHandler(logging.handlers.WatchedFileHandler):
    """
    Writes to <base_log_dir>/YYYY/MM/log-YYYY-MM-DD.log and switches files on
    the first record of a new day.
    """
    def __init__(self, base_log_dir, encoding="utf-8"):
        self.base_log_dir = base_log_dir
        self.current_day = date.today()
        super().__init__(self._path_for(self.current_day), encoding=encoding)

    def _path_for(self, day):
        folder = os.path.join(self.base_log_dir, day.strftime("%Y"), day.strftime("%m"))
        os.makedirs(folder, exist_ok=True)
        return os.path.join(folder, f"log-{day.isoformat()}.log")

    def _roll_if_new_day(self):
        today = date.today()
        if today == self.current_day:
            return
        if self.stream and not self.stream.closed:
            self.stream.close()
        self.current_day = today
        self.baseFilename = self._path_for(today)
        self.stream = self._open()

    def emit(self, record):
        try:
            self._roll_if_new_day()
        except Exception:
            self.handleError(record)
            return
        super().emit(record)


def get_base_log_dir():
    """APP_LOG_DIR, or storage/logs next to the package."""
    return os.environ.get("APP_LOG_DIR") or os.path.abspath(
        os.path.join(os.path.dirname(__file__), "../../storage/logs")
    )


BASE_LOG_DIR = get_base_log_dir()
LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG").upper()

Log = logging.getLogger("tracklet")
Log.setLevel(LOG_LEVEL)

if not Log.handlers:
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(threadName)s]: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    file_handler = DynamicDailyFileHandler(BASE_LOG_DIR)

    for handler in (console_handler, file_handler):
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(formatter)
        Log.addHandler(handler)

Log.debug(f"Logger initialized, writing to {BASE_LOG_DIR}")

__all__ = ["Log"]
