"""
Application layer - Pipeline stages and the polling loop.

Contains the main application workflows:
- producer: creates loans and queues them for verification
- worker: shared receive/process/delete protocol
- verification_worker: document verification stage
- eligibility_worker: eligibility stage and approval notification
- polling: start/stop polling task with backoff
"""
