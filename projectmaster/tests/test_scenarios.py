"""End-to-end flows through store, adapter and in-memory backend."""

import pytest

from projectmaster.common.enums import NotificationType, RelatedType, TaskStatus
from projectmaster.core.authz.policy import can_create_chat_group
from projectmaster.core.store import actions as a
from projectmaster.domain.models import Photo, Project, Subcategory, Task, make_parent


@pytest.mark.asyncio
async def test_contractor_photo_starts_task_and_notifies_management(
    backend, adapter, store, owner, ops_manager, project_manager, contractor
):
    for user in (owner, ops_manager, project_manager, contractor):
        await adapter.register_user(user)
    await adapter.activate()

    # Owner creates the project with an empty team.
    store.dispatch(a.SetUser(user=owner))
    project = await adapter.add_project(Project(id="P", name="Lakeside", owner_id=owner.id))
    assert store.state.notifications == ()

    # Ops manager staffs it.
    store.dispatch(a.SetUser(user=ops_manager))
    await adapter.update_project_team(project.id, [project_manager.id], [contractor.id])

    # The project manager sets up a department and a task.
    store.dispatch(a.SetUser(user=project_manager))
    sub = await adapter.add_subcategory(
        Subcategory(id="S", project_id=project.id, name="Framing", created_by=project_manager.id)
    )
    task = await adapter.add_task(
        Task(id="T", subcategory_id=sub.id, name="Raise walls", created_by=project_manager.id)
    )
    assert store.state.find_task(task.id).status == TaskStatus.PENDING

    # The contractor documents the work.
    store.dispatch(a.SetUser(user=contractor))
    await adapter.add_photo(
        Photo(
            id="ph-1",
            parent=make_parent("task", task.id),
            image_url="data:image/jpeg;base64,AAAA",
            uploaded_by=contractor.id,
            uploaded_by_name=contractor.name,
        )
    )

    assert store.state.find_task(task.id).status == TaskStatus.IN_PROGRESS
    assert (await backend.get_row("tasks", task.id))["status"] == "in_progress"

    photo_notes = [n for n in store.state.notifications if n.type == NotificationType.PHOTO_UPLOADED]
    assert {n.user_id for n in photo_notes} == {owner.id, project_manager.id}
    assert all(n.related_to.type == RelatedType.TASK and n.related_to.id == task.id for n in photo_notes)

    assigned = [n for n in store.state.notifications if n.type == NotificationType.PROJECT_ASSIGNED]
    assert {n.user_id for n in assigned} == {project_manager.id, contractor.id}


@pytest.mark.asyncio
async def test_manager_photo_does_not_start_task(backend, adapter, store, owner, project_manager, project, subcategory, task):
    await adapter.activate()
    store.dispatch(a.SetUser(user=owner))
    for user in (owner, project_manager):
        await adapter.register_user(user)
    await adapter.add_project(project)
    store.dispatch(a.SetUser(user=project_manager))
    await adapter.add_subcategory(subcategory)
    await adapter.add_task(task)

    await adapter.add_photo(
        Photo(id="ph-1", parent=make_parent("task", task.id), image_url="x", uploaded_by=project_manager.id)
    )

    assert store.state.find_task(task.id).status == TaskStatus.PENDING
    photo_notes = [n for n in store.state.notifications if n.type == NotificationType.PHOTO_UPLOADED]
    assert [n.user_id for n in photo_notes] == [owner.id]


@pytest.mark.asyncio
async def test_contractor_cannot_create_chat_group(adapter, store, contractor):
    await adapter.activate()
    store.dispatch(a.SetUser(user=contractor))

    dispatched = []
    store.subscribe(lambda state, action: dispatched.append(action))

    assert can_create_chat_group(contractor) is False
    assert await adapter.create_chat_group(["u-pm"], name="Side chat") is None
    assert dispatched == []
    assert store.state.chat_groups == ()


@pytest.mark.asyncio
async def test_logout_then_login_does_not_duplicate_delivery(backend, adapter, store, owner):
    await adapter.activate()
    await adapter.deactivate()
    await adapter.activate()

    assert backend.subscriber_count("messages") == 1
    await backend.upsert("messages", {"id": "m-1", "sender_id": owner.id, "content": "hello"})
    assert len(store.state.messages) == 1
