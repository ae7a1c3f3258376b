"""
Example of using heclog with Python's standard logging module.
"""

import logging

from heclog import HECHandler


def main():
    handler = HECHandler(
        {"token": "your-token-here", "host": "splunk.local"},
        metadata={"source": "my_app", "index": "main"},
    )

    # Set formatter
    handler.setFormatter(logging.Formatter("%(message)s"))

    # Create logger
    logger = logging.getLogger("my_app")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    try:
        # Use standard logging API
        logger.debug("Debug message")
        logger.info("Info message with extra", extra={"user_id": 42})
        logger.warning("Warning message")

        try:
            raise ValueError("Something went wrong!")
        except ValueError:
            logger.exception("Caught an exception")
    finally:
        # Close handler
        handler.close()


if __name__ == "__main__":
    main()
