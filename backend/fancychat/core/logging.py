import logging
import sys
from fancychat.core.config import get_settings

def setup_logger():
    logger = logging.getLogger('fancychat_logger')
    if logger.handlers:
        return logger
    formatter = logging.Formatter('%(levelname)s - [%(asctime)s] - %(message)s', datefmt='%d/%b/%Y %H:%M:%S')
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    logger.setLevel(get_settings().LOG_LEVEL.upper())
    return logger
