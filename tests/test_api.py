import pytest

from assignments.models import AssignmentCandidate, ResponseStatus
from assignments.rotation import generate_batch
from projects.models import Project, ProjectStatus


pytestmark = pytest.mark.django_db


@pytest.fixture
def client_user(make_user):
    return make_user("client")


@pytest.fixture
def as_client(api_client, client_user):
    api_client.force_authenticate(user=client_user)
    return api_client


@pytest.fixture
def staffed_project(make_skill, make_pool, make_project, client_user):
    js = make_skill("JS")
    pool = make_pool(js, expert=2, mid=2, fresher=2)
    project = make_project(skills=[js], client=client_user)
    return project, pool


def _url(project, suffix=""):
    return f"/api/projects/{project.id}/{suffix}"


class TestProjectEndpoints:
    def test_create_project(self, as_client, client_user, make_skill) -> None:
        js, py = make_skill("JS"), make_skill("Python")

        response = as_client.post("/api/projects/", {
            "title": "Landing page",
            "description": "Marketing site",
            "skills_required": [str(py.id), str(js.id), str(py.id)],
        }, format="json")

        assert response.status_code == 201
        project = Project.objects.get(pk=response.data["id"])
        assert project.client == client_user
        assert project.status == ProjectStatus.SUBMITTED
        assert project.skills_required == [str(py.id), str(js.id)]

    def test_create_project_with_unknown_skill(self, as_client) -> None:
        response = as_client.post("/api/projects/", {
            "title": "Landing page",
            "skills_required": ["00000000-0000-0000-0000-000000000001"],
        }, format="json")

        assert response.status_code == 400
        assert "skills_required" in response.data

    def test_create_project_with_malformed_skill(self, as_client) -> None:
        response = as_client.post("/api/projects/", {
            "title": "Landing page",
            "skills_required": ["javascript"],
        }, format="json")

        assert response.status_code == 400

    def test_list_only_own_projects(self, as_client, make_project, client_user) -> None:
        mine = make_project(client=client_user)
        make_project()

        response = as_client.get("/api/projects/")

        assert response.status_code == 200
        assert [item["id"] for item in response.data] == [str(mine.id)]

    def test_requires_authentication(self, api_client) -> None:
        response = api_client.get("/api/projects/")
        assert response.status_code in (401, 403)


class TestBatchEndpoints:
    def test_generate(self, as_client, staffed_project) -> None:
        project, _ = staffed_project

        response = as_client.post(_url(project, "batches/generate/"), {"expert": 1, "mid": 1, "fresher": 1}, format="json")

        assert response.status_code == 201
        assert response.data["success"] is True
        assert len(response.data["candidates"]) == 3
        assert response.data["batch"]["batch_number"] == 1
        assert response.data["filled"] == {"EXPERT": 1, "MID": 1, "FRESHER": 1}

    def test_generate_rejects_negative_counts(self, as_client, staffed_project) -> None:
        project, _ = staffed_project

        response = as_client.post(_url(project, "batches/generate/"), {"expert": -1}, format="json")

        assert response.status_code == 400

    def test_generate_without_eligible_developers(self, as_client, make_skill, make_project, client_user) -> None:
        project = make_project(skills=[make_skill()], client=client_user)

        response = as_client.post(_url(project, "batches/generate/"), {}, format="json")

        assert response.status_code == 422
        assert response.data == {
            "success": False,
            "kind": "no_eligible_candidates",
            "error": "No eligible candidates found for the required skills",
            "retryable": False,
        }

    def test_generate_for_ineligible_project(self, as_client, staffed_project) -> None:
        project, _ = staffed_project
        Project.objects.filter(pk=project.pk).update(status=ProjectStatus.COMPLETED)

        response = as_client.post(_url(project, "batches/generate/"), {}, format="json")

        assert response.status_code == 409
        assert response.data["kind"] == "project_not_eligible"

    def test_cannot_generate_for_other_clients_project(self, api_client, make_user, staffed_project) -> None:
        project, _ = staffed_project
        api_client.force_authenticate(user=make_user())

        response = api_client.post(_url(project, "batches/generate/"), {}, format="json")

        assert response.status_code == 404

    def test_refresh(self, as_client, staffed_project) -> None:
        project, _ = staffed_project
        first = generate_batch(project.id, {"expert": 1, "mid": 0, "fresher": 0})

        response = as_client.post(_url(project, "batches/refresh/"), {"expert": 1, "mid": 0, "fresher": 0}, format="json")

        assert response.status_code == 201
        assert response.data["supersededBatchId"] == str(first.batch_id)
        assert response.data["batch"]["batch_number"] == 2

    def test_assignment_status(self, as_client, staffed_project) -> None:
        project, _ = staffed_project
        generate_batch(project.id, {"expert": 2, "mid": 2, "fresher": 2})

        response = as_client.get(_url(project, "assignment/"))

        assert response.status_code == 200
        levels = [candidate["level"] for candidate in response.data["candidates"]]
        assert levels == ["EXPERT", "EXPERT", "MID", "MID", "FRESHER", "FRESHER"]
        assert response.data["canRefresh"] is True
        assert response.data["project"]["status"] == ProjectStatus.ASSIGNING

    def test_assignment_status_when_exhausted(self, as_client, staffed_project, settings) -> None:
        settings.ROTATION_MAX_BATCHES_PER_PROJECT = 1
        project, _ = staffed_project
        generate_batch(project.id, {"expert": 1, "mid": 0, "fresher": 0})

        response = as_client.get(_url(project, "assignment/"))

        assert response.data["canRefresh"] is False

    def test_assignment_status_before_any_batch(self, as_client, staffed_project) -> None:
        project, _ = staffed_project

        response = as_client.get(_url(project, "assignment/"))

        assert response.data["batch"] is None
        assert response.data["candidates"] == []


class TestCandidateEndpoints:
    @pytest.fixture
    def offers(self, staffed_project):
        project, pool = staffed_project
        generate_batch(project.id, {"expert": 2, "mid": 0, "fresher": 0})
        return [
            AssignmentCandidate.objects.select_related("developer__user").get(developer=developer)
            for developer in pool["EXPERT"]
        ]

    def test_list_own_offers(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[0].developer.user)

        response = api_client.get("/api/candidates/")

        assert response.status_code == 200
        assert [item["id"] for item in response.data] == [str(offers[0].id)]

    def test_status_filter(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[0].developer.user)

        assert len(api_client.get("/api/candidates/?status=pending").data) == 1
        assert api_client.get("/api/candidates/?status=accepted").data == []

    def test_accept(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[0].developer.user)

        response = api_client.post(f"/api/candidates/{offers[0].id}/accept/")

        assert response.status_code == 200
        assert response.data["success"] is True
        assert response.data["candidate"]["is_first_accepted"] is True

    def test_second_accept_conflicts(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[0].developer.user)
        api_client.post(f"/api/candidates/{offers[0].id}/accept/")

        api_client.force_authenticate(user=offers[1].developer.user)
        response = api_client.post(f"/api/candidates/{offers[1].id}/accept/")

        assert response.status_code == 409
        assert response.data["kind"] == "batch_not_active"
        assert response.data["error"] == "Cannot accept candidate from completed batch"

    def test_accept_someone_elses_offer(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[1].developer.user)

        response = api_client.post(f"/api/candidates/{offers[0].id}/accept/")

        assert response.status_code == 403
        assert response.data["kind"] == "not_your_assignment"

    def test_accept_unknown_offer(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[0].developer.user)

        response = api_client.post("/api/candidates/00000000-0000-0000-0000-000000000000/accept/")

        assert response.status_code == 404

    def test_reject(self, api_client, offers) -> None:
        api_client.force_authenticate(user=offers[0].developer.user)

        response = api_client.post(f"/api/candidates/{offers[0].id}/reject/")

        assert response.status_code == 200
        assert AssignmentCandidate.objects.get(pk=offers[0].pk).response_status == ResponseStatus.REJECTED


class TestCronEndpoint:
    def test_runs_sweep(self, api_client, staffed_project, expire_offers) -> None:
        project, _ = staffed_project
        generate_batch(project.id, {"expert": 2, "mid": 0, "fresher": 0})
        expire_offers()

        response = api_client.post("/api/cron/expire-candidates/")

        assert response.status_code == 200
        assert response.data["success"] is True
        assert response.data["data"]["expiredCount"] == 2

    def test_secret_required_when_configured(self, api_client, settings) -> None:
        settings.CRON_SECRET = "s3cret"

        assert api_client.post("/api/cron/expire-candidates/").status_code == 401

        response = api_client.post("/api/cron/expire-candidates/", HTTP_AUTHORIZATION="Bearer s3cret")
        assert response.status_code == 200
        assert response.data["data"]["expiredCount"] == 0
