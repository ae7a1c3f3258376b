"""
Basic usage example for heclog.
"""

from heclog import HECLogger


def on_error(err, context):
    print("error:", err, "context:", context)


def main():
    # Only the token is required
    logger = HECLogger(
        {
            "token": "your-token-here",
            "url": "https://localhost:8088",
            "max_retries": 3,
        },
        error_handler=on_error,
    )

    def tag(context, next_):
        context.message = {"app": "chicken coop", "payload": context.message}
        next_()

    logger.use(tag)

    try:
        # Full control over the event
        logger.send(
            {
                "message": {"temperature": "70F", "chickenCount": 500},
                "severity": "info",
                "metadata": {
                    "source": "chicken coop",
                    "sourcetype": "httpevent",
                    "index": "main",
                    "host": "farm.local",
                },
            },
            lambda err, resp, body: print("Response from Splunk", body),
        )

        # Shorthands set the severity for you
        logger.set_metadata({"source": "chicken coop"})
        logger.info("Application started")
        logger.warn({"memory_percent": 85})
        logger.error("Failed to connect to external service")
    finally:
        logger.close()


if __name__ == "__main__":
    main()
