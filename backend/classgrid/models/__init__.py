from classgrid.models.activity_log import ActivityLog  # noqa: F401
from classgrid.models.notification import Notification, NotificationType  # noqa: F401
from classgrid.models.teacher import Teacher  # noqa: F401
from classgrid.models.timetable import ClassSchedule, ScheduleStatus, TimetableEntry  # noqa: F401
