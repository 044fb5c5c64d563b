from flask import Blueprint

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.states.service import STATE_RESOURCE

bp = Blueprint("states", __name__)

CrudViews(STATE_RESOURCE, role="admin").register(bp)
