"""Test suite for the formstate engine.

This package contains tests for:
- Observable stores (replay-one subscriptions, snapshots, error isolation)
- Submission state machine phases and flags
- Validation (JSON Schema adapter, single-field orchestration, input coercion)
- Submit controller (validation short-circuit, callbacks, re-entrancy)
- Form factory and end-to-end scenarios
- Structural clone/diff helpers
"""
