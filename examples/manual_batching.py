"""
Example of manual batching: events are queued until flush().
"""

from heclog import HECLogger


def main():
    # Using context manager ensures queued events are sent on exit
    with HECLogger(
        {
            "token": "your-token-here",
            "url": "https://localhost:8088",
            "auto_flush": False,
            "max_batch_count": 50,  # Or flush after 50 events
            "batch_interval": 2000,  # Or every 2 seconds
        }
    ) as logger:
        for i in range(20):
            logger.send({"message": {"item_id": i}, "severity": "debug"})

        # Sends all 20 events in a single request
        logger.flush(lambda err, resp, body: print("Response from Splunk", body))

        logger.info("Application finished successfully")

    print("Done! Queued events have been sent.")


if __name__ == "__main__":
    main()
