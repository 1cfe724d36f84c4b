import asyncio
from datetime import date

from app.core.enums import AuxDialog, QueryKey, ViewMode
from app.services.calendar_page import CalendarSession, CalendarSessionRegistry, build_calendar_page
from app.services.calendar_renderers import CalendarRenderers
from app.services.query_cache import QueryCache
from app.services.scheduling_controller import CreatePrefill


def _page(controller, **kwargs):
    return build_calendar_page(CalendarSession(controller=controller, renderers=CalendarRenderers()), **kwargs)


def test_month_page_has_grid_and_no_dialog(make_controller):
    async def scenario():
        controller = make_controller(anchor=date(2024, 3, 15))
        await controller.load()
        return _page(controller)

    page = asyncio.run(scenario())
    assert page.view_mode == ViewMode.MONTH
    assert page.title == "marzo 2024"
    assert page.month is not None and page.week is None and page.day is None
    assert page.dialog is None
    assert not page.toolbar.show_export
    assert page.filters == {"alumnoId": "all", "instructorId": "all"}
    assert (1, "Laura Martínez") in page.active_instructor_options
    assert all(name != "Marta Ríos" for _, name in page.active_instructor_options)
    assert [name for _, name in page.horse_options] == ["Tornado (Escuela)", "Luna Blanca (Privado)"]
    assert len(page.legend) == 6


def test_day_page_toolbar_and_create_dialog(make_controller):
    async def scenario():
        controller = make_controller(anchor=date(2024, 3, 20))
        await controller.load()
        controller.set_view_mode(ViewMode.DAY)
        controller.open_aux(AuxDialog.CANCEL_DAY)
        controller.open_create(CreatePrefill(horse_id=7, time="14:00"))
        return _page(controller)

    page = asyncio.run(scenario())
    assert page.day is not None
    assert page.toolbar.show_export and page.toolbar.show_cancel_day
    assert page.toolbar.cancel_day_count == 2
    assert page.toolbar.cancel_day_open
    assert page.toolbar.cancellation_reasons[-1] == "Otro"
    assert page.dialog.mode == "create"
    assert page.dialog.title == "Nueva Clase"
    assert page.dialog.description == "Programar clase para el 20 de marzo de 2024"
    assert page.dialog.defaults["caballoId"] == "7"
    assert not page.dialog.show_status


def test_edit_dialog_view_and_notification_draining(make_controller):
    async def scenario():
        controller = make_controller()
        await controller.load()
        controller.open_edit_by_id(2)
        controller.open_edit_by_id(404)
        return controller, _page(controller, drain=False), _page(controller), _page(controller)

    controller, peeked, drained, after = asyncio.run(scenario())
    assert peeked.dialog.mode == "edit"
    assert peeked.dialog.show_status
    assert peeked.dialog.description == "Editando clase de Bruno López Díaz"
    assert [n.message for n in peeked.notifications] == ["La clase ya no existe"]
    assert [n.level for n in drained.notifications] == ["error"]
    assert after.notifications == []


def test_registry_reuses_and_discards_sessions(make_controller):
    built = []

    def factory(session_id):
        controller = make_controller()
        built.append(session_id)
        return controller

    registry = CalendarSessionRegistry(factory)
    first = registry.get("s1")
    assert registry.get("s1") is first
    registry.discard("s1")
    registry.discard(None)
    assert registry.get("s1") is not first
    assert built == ["s1", "s1"]


def test_registry_drops_idle_sessions(make_controller):
    cache = QueryCache()
    now = [0.0]
    registry = CalendarSessionRegistry(
        lambda session_id: make_controller(cache=cache), idle_ttl=60, clock=lambda: now[0]
    )
    idle = registry.get("idle")
    active = registry.get("active")
    now[0] = 50
    assert registry.get("active") is active
    now[0] = 100
    registry.get("active")
    assert len(registry) == 1

    idle.controller.stale = False
    cache.invalidate(QueryKey.CLASES)
    assert idle.controller.stale is False
    assert active.controller.stale
    assert registry.get("idle") is not idle
