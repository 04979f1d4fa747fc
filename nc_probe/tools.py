from functools import wraps
import logging
import time

log = logging.getLogger(__name__)

__report_indent_level = 0


def report(fn):
    """Log the duration of each call of 'fn', nested calls are indented."""
    @wraps(fn)
    def do_report(*args, **kwargs):
        global __report_indent_level
        __report_indent_level += 1
        init_time = time.perf_counter()
        try:
            return fn(*args, **kwargs)
        finally:
            duration = time.perf_counter() - init_time
            __report_indent_level -= 1
            indent = (__report_indent_level * 2) * " "
            log.debug(f"{indent}DONE {fn.__module__}.{fn.__qualname__} @ {duration:.6f}")
    return do_report
