"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real bucket or broker
os.environ.setdefault("BUCKET_NAME", "test-exam-bucket")
os.environ.setdefault("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
