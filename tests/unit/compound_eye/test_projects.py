"""Tests for the project registry."""


class TestEnsure:
    def test_registers_new_name(self, projects):
        projects.ensure("acme/widgets")
        assert [p.name for p in projects.list()] == ["acme/widgets"]

    def test_duplicate_is_silent(self, projects):
        projects.ensure("acme/widgets")
        projects.ensure("acme/widgets")
        assert len(projects.list()) == 1


class TestCreate:
    def test_returns_new_row(self, projects):
        project = projects.create("acme/widgets")
        assert project.id > 0
        assert project.name == "acme/widgets"
        assert project.created_at.endswith("Z")

    def test_duplicate_returns_existing_row(self, projects):
        """Registration is idempotent: the original row comes back."""
        first = projects.create("acme/widgets")
        second = projects.create("acme/widgets")
        assert second == first
        assert len(projects.list()) == 1


class TestCreateBulk:
    def test_returns_only_newly_inserted(self, projects):
        """Repeats within one call and existing names are left out."""
        created = projects.create_bulk(["a", "a", "b"])

        assert [p.name for p in created] == ["a", "b"]
        assert len(projects.list()) == 2

    def test_skips_pre_existing(self, projects):
        projects.create("a")

        created = projects.create_bulk(["a", "b", "c"])

        assert [p.name for p in created] == ["b", "c"]
        assert [p.name for p in projects.list()] == ["a", "b", "c"]

    def test_all_existing_returns_empty(self, projects):
        projects.create_bulk(["a", "b"])
        assert projects.create_bulk(["b", "a"]) == []

    def test_empty_input(self, projects):
        assert projects.create_bulk([]) == []


class TestList:
    def test_ordered_by_name_binary(self, projects):
        """Uppercase sorts before lowercase under byte ordering."""
        for name in ["zeta/repo", "Acme/repo", "acme/repo"]:
            projects.create(name)

        assert [p.name for p in projects.list()] == ["Acme/repo", "acme/repo", "zeta/repo"]

    def test_get_by_name(self, projects):
        created = projects.create("acme/widgets")
        assert projects.get_by_name("acme/widgets") == created
        assert projects.get_by_name("acme/missing") is None


class TestDelete:
    def test_delete_existing(self, projects):
        project = projects.create("acme/widgets")
        assert projects.delete(project.id) is True
        assert projects.list() == []

    def test_delete_missing_returns_false(self, projects):
        assert projects.delete(999) is False

    def test_delete_leaves_observations_untouched(self, projects, observations):
        """Observations keep their project name after the project is deleted."""
        obs = observations.create("slow builds", project="acme/widgets")
        project = projects.get_by_name("acme/widgets")

        assert projects.delete(project.id) is True
        assert observations.get(obs.id).project == "acme/widgets"
