from rocal.models.records import Material, PieceWorkJob, Supplier
from rocal.models.user import User

__all__ = [
    "Material",
    "PieceWorkJob",
    "Supplier",
    "User",
]
