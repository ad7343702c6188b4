from wolf_marketer.db.repositories.users import UsersRepository
from wolf_marketer.db.repositories.platforms import PlatformsRepository
from wolf_marketer.db.repositories.workflows import WorkflowsRepository
from wolf_marketer.db.repositories.tasks import TasksRepository
from wolf_marketer.db.repositories.activities import ActivitiesRepository
from wolf_marketer.db.repositories.earnings import PlatformEarningsRepository
from wolf_marketer.db.repositories.withdrawals import WithdrawalsRepository
from wolf_marketer.db.repositories.payment_methods import PaymentMethodsRepository
from wolf_marketer.db.repositories.transactions import TransactionsRepository

__all__ = [
    "UsersRepository",
    "PlatformsRepository",
    "WorkflowsRepository",
    "TasksRepository",
    "ActivitiesRepository",
    "PlatformEarningsRepository",
    "WithdrawalsRepository",
    "PaymentMethodsRepository",
    "TransactionsRepository",
]
