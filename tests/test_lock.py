"""Lock file persistence and GitHub folder hashes."""

import json

import httpx

from skill_dock.config import settings
from skill_dock.core.cache import cache_stats, get_cached, purge_prefix, set_cached
from skill_dock.core.lock import (
    CURRENT_VERSION,
    add_skill_to_lock,
    compute_content_hash,
    dismiss_prompt,
    fetch_skill_folder_hash,
    get_all_locked_skills,
    get_skill_from_lock,
    get_skills_by_source,
    is_prompt_dismissed,
    read_skill_lock,
    remove_skill_from_lock,
)
from skill_dock.models import SkillLockEntry


def _entry(source="o/r", path="skills/a/SKILL.md", folder_hash="abc") -> SkillLockEntry:
    return SkillLockEntry(
        source=source,
        source_type="github",
        source_url=f"https://github.com/{source}.git",
        skill_path=path,
        skill_folder_hash=folder_hash,
    )


def test_missing_lock_is_empty(home):
    lock = read_skill_lock()
    assert lock.version == CURRENT_VERSION
    assert lock.skills == {}


def test_add_and_read_back_camel_case(home):
    add_skill_to_lock("a", _entry())

    raw = json.loads(settings.lock_path().read_text())
    assert raw["version"] == 3
    stored = raw["skills"]["a"]
    assert stored["sourceType"] == "github"
    assert stored["sourceUrl"] == "https://github.com/o/r.git"
    assert stored["skillFolderHash"] == "abc"
    assert stored["installedAt"] and stored["updatedAt"]

    assert get_skill_from_lock("a").skill_path == "skills/a/SKILL.md"


def test_update_keeps_installed_at(home):
    first = add_skill_to_lock("a", _entry(folder_hash="1"))
    second = add_skill_to_lock("a", _entry(folder_hash="2"))

    assert second.installed_at == first.installed_at
    assert second.updated_at >= first.updated_at
    assert get_skill_from_lock("a").skill_folder_hash == "2"


def test_remove_from_lock(home):
    add_skill_to_lock("a", _entry())
    assert remove_skill_from_lock("a")
    assert not remove_skill_from_lock("a")
    assert get_all_locked_skills() == {}


def test_old_or_corrupt_lock_is_discarded(home):
    path = settings.lock_path()
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"version": 2, "skills": {"a": {"source": "x"}}}))
    assert read_skill_lock().skills == {}

    path.write_text("{not json")
    assert read_skill_lock().skills == {}


def test_project_lock_is_separate(home, project):
    add_skill_to_lock("a", _entry(), is_global=False, cwd=project)
    assert (project / ".agents" / ".skill-lock.json").exists()
    assert get_all_locked_skills() == {}
    assert "a" in get_all_locked_skills(is_global=False, cwd=project)


def test_skills_by_source(home):
    add_skill_to_lock("a", _entry(source="o/r"))
    add_skill_to_lock("b", _entry(source="o/r", path="skills/b/SKILL.md"))
    add_skill_to_lock("c", _entry(source="x/y"))

    grouped = get_skills_by_source()
    assert sorted(grouped["o/r"][0]) == ["a", "b"]
    assert grouped["x/y"][0] == ["c"]


def test_dismissed_prompts(home):
    assert not is_prompt_dismissed("find_skills_prompt")
    dismiss_prompt("find_skills_prompt")
    assert is_prompt_dismissed("find_skills_prompt")
    assert json.loads(settings.lock_path().read_text())["dismissed"]["findSkillsPrompt"] is True


def test_content_hash():
    assert compute_content_hash("abc") == compute_content_hash("abc")
    assert compute_content_hash("abc") != compute_content_hash("abd")
    assert len(compute_content_hash("")) == 64


def _tree_transport(calls: list[str]):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("/main"):
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={
            "sha": "root-sha",
            "tree": [
                {"path": "skills", "type": "tree", "sha": "skills-sha"},
                {"path": "skills/a", "type": "tree", "sha": "a-sha"},
                {"path": "skills/a/SKILL.md", "type": "blob", "sha": "blob-sha"},
            ],
        })

    return httpx.MockTransport(handler)


async def test_folder_hash_falls_back_to_master_and_caches(home):
    calls: list[str] = []
    async with httpx.AsyncClient(transport=_tree_transport(calls)) as client:
        assert await fetch_skill_folder_hash("o/r", "skills/a/SKILL.md", client) == "a-sha"
        assert await fetch_skill_folder_hash("o/r", "SKILL.md", client) == "root-sha"
        assert await fetch_skill_folder_hash("o/r", "skills/missing/SKILL.md", client) is None

    # main is retried (404s are not cached), master came from the cache
    assert calls.count("/repos/o/r/git/trees/master") == 1


def test_cache_roundtrip_and_purge(home):
    set_cached("tree", "o/r", "main", payload={"sha": "x"})
    assert get_cached("tree", "o/r", "main") == {"sha": "x"}
    assert get_cached("tree", "o/r", "main", ttl=-1) is None
    assert cache_stats()["entries"] == 0

    set_cached("tree", "o/r", "main", payload={"sha": "x"})
    assert purge_prefix("tree") == 1
    assert get_cached("tree", "o/r", "main") is None


async def test_folder_hash_survives_non_json_response(home):
    def handler(request):
        return httpx.Response(200, text="<html>rate limited</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await fetch_skill_folder_hash("o/r", "skills/a/SKILL.md", client) is None
    assert cache_stats()["entries"] == 0
