"""Register connectors idempotently and gate on RUNNING state."""

import os

from lakehouse_cdc import (
    ConnectorTimeoutError,
    HarnessSettings,
    IcebergSinkConnector,
    KafkaConnectClient,
    POSTGRES_SOURCE_CONNECTOR,
)


def main():
    settings = HarnessSettings.from_env()

    # Source connector on the Debezium worker
    with KafkaConnectClient(settings.debezium_url) as debezium:
        outcome = debezium.register_connector(POSTGRES_SOURCE_CONNECTOR)
        print(f"{POSTGRES_SOURCE_CONNECTOR.name}: {outcome.value}")
        status = debezium.wait_for_running(POSTGRES_SOURCE_CONNECTOR.name, timeout=30)
        print(f"  {len(status.tasks)} task(s) RUNNING")

    # Iceberg sink with a shorter commit interval
    iceberg_sink = IcebergSinkConnector(
        commit_interval_ms=int(os.getenv("ICEBERG_COMMIT_INTERVAL_MS", "5000")),
        tables=["cdc.users"],
    )
    with KafkaConnectClient(settings.iceberg_sink_url) as connect:
        print(f"{iceberg_sink.name}: {connect.register_connector(iceberg_sink).value}")
        try:
            connect.wait_for_running(iceberg_sink.name, timeout=60)
        except ConnectorTimeoutError as e:
            status = connect.get_connector_status(iceberg_sink.name)
            for task in status.failed_tasks:
                print(f"  task {task.id} FAILED: {(task.trace or '').splitlines()[:1]}")
            raise SystemExit(e)


if __name__ == "__main__":
    main()
