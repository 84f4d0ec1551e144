# Package marker
from aidetect.models.user import User  # noqa
from aidetect.models.course import CourseModule, GroupMember  # noqa
from aidetect.models.stored_file import StoredFile  # noqa
from aidetect.models.module_config import ModuleConfig  # noqa
from aidetect.models.detection_file import DetectionFile  # noqa
