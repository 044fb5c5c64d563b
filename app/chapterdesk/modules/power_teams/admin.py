from flask import Blueprint

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.power_teams.service import POWER_TEAM_RESOURCE, form_values, with_category_names
from app.chapterdesk.options import category_options, subcategory_options
from app.chapterdesk.resource import gateway

bp = Blueprint("power_teams", __name__)


class PowerTeamViews(CrudViews):
    def initial_values(self, entity):
        return form_values(entity)

    def display_rows(self, page, ctx):
        return with_category_names(page.items)

    def form_context(self, mode, entity):
        gw = gateway()
        return {"options": {"categoryIds": category_options(gw), "subCategoryIds": subcategory_options(gw)}}


PowerTeamViews(POWER_TEAM_RESOURCE, role="admin").register(bp)
