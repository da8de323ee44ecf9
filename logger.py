# Console logging with a level-coloured formatter.
import logging


class CustomFormatter(logging.Formatter):
    """
    Formats log records with an ANSI colour per level.

    Usage:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter())
    """
    grey = "\x1b[37;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    dark_grey = "\x1b[30;1m"
    reset = "\x1b[0m"
    fmt = "[%(levelname)s] %(asctime)s %(name)s - %(message)s"

    FORMATS = {
        logging.DEBUG: dark_grey + fmt + reset,
        logging.INFO: grey + fmt + reset,
        logging.WARNING: yellow + fmt + reset,
        logging.ERROR: red + fmt + reset,
        logging.CRITICAL: bold_red + fmt + reset,
    }

    def format(self, record):
        formatter = logging.Formatter(self.FORMATS.get(record.levelno, self.fmt))
        return formatter.format(record)


log = logging.getLogger("blog")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach the console handler once and set the level of the `blog` logger."""
    if not any(getattr(h, "_blog_console", False) for h in log.handlers):
        ch = logging.StreamHandler()
        ch.setFormatter(CustomFormatter())
        ch._blog_console = True
        log.addHandler(ch)
    log.setLevel(level.upper())
    return log


def get_logger(name: str) -> logging.Logger:
    return log.getChild(name)
