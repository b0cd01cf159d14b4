from .reference import Site, AssetType, User, Personnel
from .ledger import LedgerEntry
from .transactions import Acquisition, Transfer, Assignment, Expenditure

__all__ = [
    'Site', 'AssetType', 'User', 'Personnel',
    'LedgerEntry',
    'Acquisition', 'Transfer', 'Assignment', 'Expenditure',
]
