import os
from dotenv import load_dotenv

load_dotenv()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
DOC_VERIFICATION_QUEUE_NAME = os.getenv("DOC_VERIFICATION_QUEUE_NAME", "queue:doc_verification")
ELIGIBILITY_QUEUE_NAME = os.getenv("ELIGIBILITY_QUEUE_NAME", "queue:eligibility")
LOAN_APPROVED_CHANNEL = os.getenv("LOAN_APPROVED_CHANNEL", "loan-approved")
LOAN_KEY_PREFIX = os.getenv("LOAN_KEY_PREFIX", "loan")

RECEIVE_BATCH_SIZE = int(os.getenv("RECEIVE_BATCH_SIZE", "10"))
RECEIVE_WAIT_SECONDS = int(os.getenv("RECEIVE_WAIT_SECONDS", "20"))  # long polling window
VISIBILITY_TIMEOUT_SECONDS = float(os.getenv("VISIBILITY_TIMEOUT_SECONDS", "30"))
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))
ERROR_BACKOFF_SECONDS = float(os.getenv("ERROR_BACKOFF_SECONDS", "5.0"))

VERIFICATION_PASS_RATE = float(os.getenv("VERIFICATION_PASS_RATE", "0.9"))
ELIGIBILITY_APPROVAL_RATE = float(os.getenv("ELIGIBILITY_APPROVAL_RATE", "0.7"))
MAX_LOAN_AMOUNT = int(os.getenv("MAX_LOAN_AMOUNT", "1000000"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")
