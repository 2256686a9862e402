"""
Infrastructure layer - External dependencies and adapters.

This package contains all infrastructure-related modules:
- redis_infra: record store, message queue and notifier on Redis
"""
