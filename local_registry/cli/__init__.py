from .common import LOG_LEVELS, add_common_cli_arguments

__all__ = ["LOG_LEVELS", "add_common_cli_arguments"]
