import logging

_DEF_FMT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if any(getattr(handler, "_calltraffic", False) for handler in root.handlers):
        root.setLevel(level.upper())
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_DEF_FMT))
    handler._calltraffic = True
    root.addHandler(handler)
    root.setLevel(level.upper())
