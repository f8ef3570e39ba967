from fastapi.responses import HTMLResponse, RedirectResponse

from ..exceptions import BadRequestError
from ..multiset import ValueMultiset
from ..services import couplings as couplings_service
from .common import RequestContext


def couplings_list(ctx: RequestContext) -> HTMLResponse:
    couplings = couplings_service.list_couplings(ctx.db)
    return ctx.render("coupling_list.html", {"couplings": couplings})


def couplings_add(ctx: RequestContext) -> HTMLResponse | RedirectResponse:
    return _add_edit(ctx, None)


def couplings_edit(ctx: RequestContext) -> HTMLResponse | RedirectResponse:
    return _add_edit(ctx, ctx.id_param())


def couplings_delete(ctx: RequestContext) -> RedirectResponse:
    couplings_service.delete_coupling(ctx.db, ctx.id_param())
    return ctx.redirect("/couplings")


def _add_edit(
    ctx: RequestContext, coupling_id: int | None
) -> HTMLResponse | RedirectResponse:
    if ctx.request.method == "GET":
        coupling = (
            couplings_service.get_coupling(ctx.db, coupling_id)
            if coupling_id is not None
            else None
        )
        return ctx.render(
            "coupling_add_edit.html",
            {
                "edit_id": coupling_id,
                "company_to_vehicles": couplings_service.company_vehicle_numbers(ctx.db),
                "company": coupling.company if coupling else None,
                "vehicles": coupling.vehicle_numbers if coupling else [],
            },
        )

    form = ctx.form()
    company = _required(form, "company")
    vehicles_text = _required(form, "vehicles")
    couplings_service.replace_coupling(ctx.db, coupling_id, company, vehicles_text)
    return ctx.redirect("/couplings")


def _required(form: ValueMultiset, key: str) -> str:
    value = form.get_last(key)
    if value is None:
        raise BadRequestError(f"field '{key}' is required")
    if not value:
        raise BadRequestError(f"field '{key}' must not be empty")
    return value
