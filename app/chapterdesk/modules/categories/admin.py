from flask import Blueprint

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.categories.service import CATEGORY_RESOURCE

bp = Blueprint("categories", __name__)

CrudViews(CATEGORY_RESOURCE, role="admin").register(bp)
