"""
Basic usage example for cloudwatch-transport.

Ships a few JSON log lines to CloudWatch Logs. Point it at LocalStack by
setting ``CWTRANSPORT_CLOUDWATCH__ENDPOINT_URL=http://localhost:4566``.
"""

import asyncio
import json
import os
import sys
import time
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cloudwatch_transport import CloudWatchTransport, TransportState


async def main() -> None:
    options = {
        "logGroupName": os.getenv("LOG_GROUP", "/cloudwatch-transport/example"),
        "logStreamName": os.getenv("LOG_STREAM", "basic-usage"),
        "remoteRegion": os.getenv("AWS_REGION", "us-east-1"),
        "endpointUrl": os.getenv("CWTRANSPORT_CLOUDWATCH__ENDPOINT_URL"),
        "interval": 2000,
    }

    async with CloudWatchTransport(options) as transport:
        if transport.state is TransportState.READY_DEGRADED:
            print("startup failed; records will carry the error", file=sys.stderr)
        transport.on_flushed(lambda: print("flushed"))

        lines = [
            json.dumps({"time": int(time.time() * 1000), "level": 30, "msg": "started"}),
            "plain text line without a timestamp",
            json.dumps({"time": int(time.time() * 1000), "level": 40, "msg": "warn"}),
        ]
        await transport.consume(lines)
    # Leaving the block runs one final flush and releases the client


if __name__ == "__main__":
    asyncio.run(main())
