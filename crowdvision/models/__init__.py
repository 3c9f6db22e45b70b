# CrowdVision database models
# Import all models here for SQLAlchemy discovery

from crowdvision.models.detection_record import DetectionRecord   # noqa
