from flask import Blueprint

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.subcategories.service import SUBCATEGORY_RESOURCE, with_category_names
from app.chapterdesk.options import category_options, label_map
from app.chapterdesk.resource import gateway

bp = Blueprint("subcategories", __name__)


class SubCategoryViews(CrudViews):
    def list_context(self, params):
        return {"categories": label_map(category_options(gateway()))}

    def display_rows(self, page, ctx):
        return with_category_names(page, ctx["categories"])

    def form_context(self, mode, entity):
        return {"options": {"categoryId": category_options(gateway())}}


SubCategoryViews(SUBCATEGORY_RESOURCE, role="admin").register(bp)
