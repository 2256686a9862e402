"""
Loan pipeline - asynchronous loan application processing.

Contains:
- app: Stage producer, queue workers and the polling task
- infra: Redis-backed record store, queue and notifier
- api: HTTP intake for new loan applications
"""
