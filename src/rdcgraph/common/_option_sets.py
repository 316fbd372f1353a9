import argparse
import logging
from dataclasses import dataclass

#: The logger that receives every primitive that is sent to the build system host.
HOST_LOGGER = "rdcgraph.core.system.host"


@dataclass(frozen=True)
class LoggingOptions:
    verbosity: int
    quietness: int
    trace_host: bool = False

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser, default_verbosity: int = 0) -> None:
        group = parser.add_argument_group("logging options")
        group.add_argument(
            "-v",
            dest="verbosity",
            action="count",
            default=default_verbosity,
            help="increase the log level (can be specified multiple times)",
        )
        group.add_argument(
            "-q",
            dest="quietness",
            action="count",
            default=0,
            help="decrease the log level (can be specified multiple times)",
        )
        group.add_argument(
            "--trace-host",
            action="store_true",
            help="log every declaration that is passed to the build system host, regardless of the log level",
        )

    @staticmethod
    def available(args: argparse.Namespace) -> bool:
        return hasattr(args, "verbosity")

    @classmethod
    def collect(cls, args: argparse.Namespace) -> "LoggingOptions":
        return cls(
            verbosity=args.verbosity,
            quietness=args.quietness,
            trace_host=args.trace_host,
        )

    @property
    def level(self) -> int:
        """
        >>> LoggingOptions(0, 0).level == logging.WARNING, LoggingOptions(2, 0).level == logging.DEBUG
        (True, True)
        >>> LoggingOptions(1, 3).level == logging.ERROR
        True
        """

        verbosity = self.verbosity - self.quietness
        if verbosity > 1:
            return logging.DEBUG
        elif verbosity > 0:
            return logging.INFO
        elif verbosity == 0:
            return logging.WARNING
        else:
            return logging.ERROR

    def init_logging(self) -> None:
        from rich.logging import RichHandler

        logging.basicConfig(level=self.level, format="%(message)s", handlers=[RichHandler()])
        if self.trace_host:
            logging.getLogger(HOST_LOGGER).setLevel(logging.DEBUG)
