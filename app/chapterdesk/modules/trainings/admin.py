from flask import Blueprint

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.trainings.service import TRAINING_RESOURCE
from app.chapterdesk.timeslots import TIME_OPTIONS

bp = Blueprint("trainings", __name__)


class TrainingViews(CrudViews):
    def form_context(self, mode, entity):
        return {"time_options": TIME_OPTIONS}


TrainingViews(TRAINING_RESOURCE, role="admin").register(bp)
