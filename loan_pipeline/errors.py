"""Exceptions raised while moving a loan through the pipeline.

A worker deletes the message for anything derived from
``PermanentMessageError``; any other exception leaves it on the queue so
the broker redelivers it after the visibility timeout.
"""


class PipelineError(Exception):
    pass


class PermanentMessageError(PipelineError):
    """The message can never succeed and is dropped."""


class MalformedMessageError(PermanentMessageError):
    pass


class LoanNotFoundError(PermanentMessageError):
    def __init__(self, loan_id):
        super().__init__(f"Loan {loan_id} not found")
        self.loan_id = loan_id


class InvalidLoanStateError(PermanentMessageError):
    pass


class InvalidTransitionError(PipelineError):
    def __init__(self, source, target):
        super().__init__(f"Illegal status transition {source} -> {target}")
        self.source = source
        self.target = target
