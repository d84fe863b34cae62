"""
日志配置

库模块只使用 logging.getLogger(__name__)；命令行入口调用 configure_logging，
通过 structlog 的 ProcessorFormatter 统一输出格式：
- 默认: 控制台格式，输出到 stderr
- --log-json: 每行一个 JSON 对象，输出到 stderr
"""

import logging
import sys

import structlog


def configure_logging(verbose: bool = False, log_json: bool = False):
    """
    配置日志输出

    Args:
        verbose: sci_client 输出 DEBUG 日志，否则只输出 WARNING 以上
        log_json: 使用 JSON 格式
    """
    level = logging.DEBUG if verbose else logging.WARNING

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_json:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("sci_client").setLevel(level)
    # httpx 在 INFO 级别记录每个请求
    logging.getLogger("httpx").setLevel(logging.WARNING)
