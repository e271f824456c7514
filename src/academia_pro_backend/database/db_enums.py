'''
Static enums mirroring the ENUM types of the database schema.
'''
import enum


class ListableEnum(str, enum.Enum):
    """A str Enum that can list all of its values."""
    @classmethod
    def get_all_names(cls) -> list[str]:
        return [member.value for member in cls]


class UserRole(ListableEnum):
    STUDENT = 'student'
    TUTOR = 'tutor'
    ADMIN = 'admin'


class ServiceCategoryEnum(ListableEnum):
    ESSAY_WRITING = 'essay_writing'
    RESEARCH_PAPER = 'research_paper'
    HOMEWORK = 'homework'
    TUTORING = 'tutoring'
    EXAM_PREP = 'exam_prep'
    EDITING = 'editing'


class OrderStatusEnum(ListableEnum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PaymentStatusEnum(ListableEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'


class PaymentMethodEnum(ListableEnum):
    CARD = 'card'
    BANK_TRANSFER = 'bank_transfer'
