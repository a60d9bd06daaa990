"""Register every connector and wait for a fresh row to reach each sink."""

import asyncio
import logging

from lakehouse_cdc import HarnessSettings, PipelineWarmup, Sink
from lakehouse_cdc.warmup import poll_es_until_found, USERS_INDEX


def main():
    logging.basicConfig(level=logging.INFO)

    settings = HarnessSettings.from_env()
    pipeline = PipelineWarmup(settings)

    try:
        # Cold start: generous per-sink deadlines, all sinks at once
        reports = asyncio.run(pipeline.warm_up_all(list(Sink)))
        for report in reports:
            print(f"{report.sink.value}: {report.user.email} after "
                  f"{report.result.attempt_count} attempt(s), {report.elapsed:.1f}s")

        # Warm pipeline: a new row should show up well within 90s
        user = pipeline.insert_marker(Sink.ELASTICSEARCH, "example")
        result = poll_es_until_found(
            pipeline.search, USERS_INDEX, "email.keyword", user.email, 90)
        if result:
            print(f"Found {user.email} in Elasticsearch: {result.value[0]}")
        else:
            print(f"{user.email} not visible after {result.elapsed:.1f}s")
    finally:
        pipeline.close()


if __name__ == "__main__":
    main()
