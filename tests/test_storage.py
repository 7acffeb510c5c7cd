"""Contract tests for CatalogRepository, run on MemStorage and DatabaseStorage."""

from datetime import datetime, timedelta, timezone

import pytest

from geektunes import schemas
from geektunes.exceptions import DuplicateKey, InvalidArgument, NotFound

from conftest import make_database_storage


def make_artist(storage, name, roles=(), description="", is_active=True, **extra):
    return storage.create_artist(schemas.ArtistCreate(
        name=name,
        avatar=f"https://example.com/{name}.png",
        description=description,
        roles=list(roles),
        is_active=is_active,
        **extra,
    ))


def make_project(storage, name, **extra):
    values = dict(name=name, cover="https://example.com/cover.png", description="")
    values.update(extra)
    return storage.create_project(schemas.ProjectCreate(**values))


@pytest.fixture
def seeded(storage):
    """The two-artist catalog from the reference scenario."""
    klzinn = make_artist(storage, "klzinn", roles=["cantor", "editor"], description="cantor geek desde 2023.")
    old_one = make_artist(storage, "Old One", roles=["cantor"], is_active=False)
    return storage, klzinn, old_one


class TestArtistQueries:
    """Listing, role filter and search over active artists."""

    def test_reference_scenario(self, seeded):
        """Inactive artists are hidden everywhere except lookup by id."""
        storage, klzinn, old_one = seeded

        assert [a.name for a in storage.get_artists_by_role("cantor")] == ["klzinn"]
        assert [a.name for a in storage.search_artists("klz")] == ["klzinn"]
        assert storage.get_artist(old_one.id).name == "Old One"
        assert storage.get_artist(old_one.id).is_active is False
        assert [a.name for a in storage.get_all_artists()] == ["klzinn"]

    def test_all_artists_in_insertion_order(self, storage):
        for name in ["c", "a", "b"]:
            make_artist(storage, name)
        assert [a.name for a in storage.get_all_artists()] == ["c", "a", "b"]

    def test_role_match_is_exact_and_case_sensitive(self, seeded):
        storage, _, _ = seeded
        assert storage.get_artists_by_role("Cantor") == []
        assert storage.get_artists_by_role("cant") == []
        assert [a.name for a in storage.get_artists_by_role("editor")] == ["klzinn"]

    def test_unknown_role_is_empty_list(self, seeded):
        storage, _, _ = seeded
        assert storage.get_artists_by_role("drummer") == []

    def test_search_is_case_insensitive(self, seeded):
        storage, _, _ = seeded
        assert [a.name for a in storage.search_artists("KLZ")] == ["klzinn"]

    def test_search_matches_description(self, seeded):
        storage, _, _ = seeded
        assert [a.name for a in storage.search_artists("desde 2023")] == ["klzinn"]

    def test_search_matches_role_substring(self, storage):
        make_artist(storage, "Beats", roles=["beatmaker"])
        make_artist(storage, "Voice", roles=["cantor"])
        assert [a.name for a in storage.search_artists("BEAT")] == ["Beats"]

    def test_search_excludes_inactive(self, seeded):
        storage, _, _ = seeded
        assert storage.search_artists("old one") == []

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_search_is_invalid_argument(self, seeded, query):
        storage, _, _ = seeded
        with pytest.raises(InvalidArgument):
            storage.search_artists(query)

    def test_missing_artist_is_none(self, storage):
        assert storage.get_artist(9999) is None


class TestArtistMutations:
    """Create, update and soft delete."""

    def test_create_applies_defaults(self, storage):
        data = schemas.ArtistCreate(name="New", avatar="a.png", description="d")
        created = storage.create_artist(data)

        fetched = storage.get_artist(created.id)
        assert fetched == created
        assert fetched.is_active is True
        assert fetched.roles == []
        assert fetched.musical_styles == []
        assert fetched.artist_types == []
        assert fetched.likes_count == 0
        assert fetched.social_links == "{}"

    def test_create_assigns_fresh_ids(self, storage):
        first = make_artist(storage, "one")
        second = make_artist(storage, "two")
        assert first.id != second.id

    def test_round_trip_keeps_supplied_fields(self, storage):
        data = schemas.ArtistCreate(
            name="KAISH",
            avatar="k.png",
            description="compositor",
            roles=["compositor", "cantor"],
            social_links='{"youtube": "https://youtube.com/@k"}',
            music_url="https://example.com/k.mp3",
            musical_styles=["trap"],
            artist_types=["Geek"],
        )
        created = storage.create_artist(data)
        fetched = storage.get_artist(created.id)
        assert fetched.model_dump(exclude={"id"}) == data.model_dump()

    def test_partial_update(self, storage):
        artist = make_artist(storage, "before", roles=["cantor"])
        updated = storage.update_artist(artist.id, {"name": "after"})
        assert updated.name == "after"
        assert updated.roles == ["cantor"]
        assert storage.get_artist(artist.id).name == "after"

    def test_update_ignores_null_for_required_field(self, storage):
        artist = make_artist(storage, "keep")
        updated = storage.update_artist(artist.id, {"name": None, "music_url": None})
        assert updated.name == "keep"
        assert updated.music_url is None

    def test_update_missing_artist(self, storage):
        assert storage.update_artist(42, {"name": "x"}) is None

    def test_delete_is_soft(self, storage):
        artist = make_artist(storage, "gone")
        assert storage.delete_artist(artist.id) is True
        assert storage.get_all_artists() == []
        assert storage.get_artist(artist.id).is_active is False
        assert [a.name for a in storage.get_all_artists_admin()] == ["gone"]

    def test_delete_missing_artist(self, storage):
        assert storage.delete_artist(42) is False

    def test_returned_records_are_detached(self, storage):
        artist = make_artist(storage, "safe", roles=["cantor"])
        artist.roles.append("hacker")
        assert storage.get_artist(artist.id).roles == ["cantor"]


class TestUsers:

    def test_create_and_lookup(self, storage):
        user = storage.create_user("demo", "hash", email="demo@example.com")
        assert isinstance(user.id, str) and user.id
        assert storage.get_user(user.id).username == "demo"
        assert storage.get_user_by_username("demo").id == user.id
        assert user.is_admin is False

    def test_missing_user_is_none(self, storage):
        assert storage.get_user("nope") is None
        assert storage.get_user_by_username("nope") is None

    def test_duplicate_username_is_rejected(self, storage):
        storage.create_user("demo", "hash")
        with pytest.raises(DuplicateKey):
            storage.create_user("demo", "other-hash")
        assert len(storage.get_all_users()) == 1

    def test_admin_status_toggle(self, storage):
        user = storage.create_user("demo", "hash")
        assert storage.update_user_admin_status(user.id, True).is_admin is True
        assert storage.get_user(user.id).is_admin is True
        assert storage.update_user_admin_status("missing", True) is None

    def test_profile_update(self, storage):
        user = storage.create_user("demo", "hash", first_name="Old")
        updated = storage.update_user_profile(user.id, {"first_name": "New", "last_name": "Name"})
        assert updated.first_name == "New"
        assert updated.last_name == "Name"
        assert updated.username == "demo"

    def test_artist_profile_of_user(self, storage):
        user = storage.create_user("owner", "hash")
        make_artist(storage, "mine", user_id=user.id)
        assert storage.get_user_artist_profile(user.id).name == "mine"
        assert storage.get_user_artist_profile("someone-else") is None


class TestProjects:

    def test_defaults_and_status_filter(self, storage):
        dev = make_project(storage, "Trap dos Animes")
        done = make_project(storage, "Cypher", status="finalizado")
        assert dev.status == "em_desenvolvimento"
        assert dev.created_at is not None
        assert [p.id for p in storage.get_projects_by_status("finalizado")] == [done.id]

    def test_search_and_soft_delete(self, storage):
        project = make_project(storage, "Cypher Geek", genres=["Hip-Hop"])
        assert [p.id for p in storage.search_projects("hip")] == [project.id]
        assert storage.delete_project(project.id) is True
        assert storage.search_projects("hip") == []
        assert storage.get_all_projects() == []
        assert storage.get_project(project.id).is_active is False

    def test_blank_project_search(self, storage):
        with pytest.raises(InvalidArgument):
            storage.search_projects(" ")

    def test_collaborators_must_be_artists(self, storage):
        artist = make_artist(storage, "klzinn")
        project = make_project(storage, "Collab", collaborators=[artist.id])
        assert project.collaborators == [artist.id]
        with pytest.raises(InvalidArgument):
            make_project(storage, "Broken", collaborators=[artist.id, 999])
        with pytest.raises(InvalidArgument):
            storage.update_project(project.id, {"collaborators": [999]})

    def test_partial_update(self, storage):
        project = make_project(storage, "Old", genres=["Trap"])
        updated = storage.update_project(project.id, {"status": "lancado"})
        assert updated.status == "lancado"
        assert updated.genres == ["Trap"]
        assert storage.update_project(999, {"name": "x"}) is None


class TestLikes:

    def test_like_and_unlike_update_counter(self, storage):
        user = storage.create_user("fan", "hash")
        artist = make_artist(storage, "idol")

        like = storage.like_artist(user.id, artist.id)
        assert like.user_id == user.id and like.artist_id == artist.id
        assert storage.is_artist_liked(user.id, artist.id) is True
        assert storage.get_artist(artist.id).likes_count == 1
        assert [l.artist_id for l in storage.get_user_likes(user.id)] == [artist.id]

        assert storage.unlike_artist(user.id, artist.id) is True
        assert storage.is_artist_liked(user.id, artist.id) is False
        assert storage.get_artist(artist.id).likes_count == 0

    def test_double_like_is_duplicate(self, storage):
        user = storage.create_user("fan", "hash")
        artist = make_artist(storage, "idol")
        storage.like_artist(user.id, artist.id)
        with pytest.raises(DuplicateKey):
            storage.like_artist(user.id, artist.id)
        assert storage.get_artist(artist.id).likes_count == 1

    def test_unlike_without_like_keeps_counter(self, storage):
        user = storage.create_user("fan", "hash")
        artist = make_artist(storage, "idol")
        assert storage.unlike_artist(user.id, artist.id) is False
        assert storage.get_artist(artist.id).likes_count == 0

    def test_like_unknown_or_inactive_artist(self, storage):
        user = storage.create_user("fan", "hash")
        hidden = make_artist(storage, "hidden", is_active=False)
        with pytest.raises(NotFound):
            storage.like_artist(user.id, 999)
        with pytest.raises(NotFound):
            storage.like_artist(user.id, hidden.id)


class TestNotifications:

    def test_newest_first_and_active_only(self, storage):
        first = storage.create_notification(schemas.NotificationCreate(title="one", message="m"))
        second = storage.create_notification(schemas.NotificationCreate(title="two", message="m"))
        assert [n.id for n in storage.get_all_notifications()] == [second.id, first.id]
        assert [n.id for n in storage.get_active_notifications()] == [second.id, first.id]

    def test_delete_is_hard(self, storage):
        notification = storage.create_notification(schemas.NotificationCreate(title="t", message="m"))
        assert storage.delete_notification(notification.id) is True
        assert storage.get_all_notifications() == []
        assert storage.delete_notification(notification.id) is False

    def test_user_targeting(self, storage):
        fan = storage.create_user("fan", "hash")
        singer = storage.create_user("singer", "hash")
        make_artist(storage, "singer-profile", user_id=singer.id)

        storage.create_notification(schemas.NotificationCreate(title="everyone", message="m"))
        storage.create_notification(schemas.NotificationCreate(
            title="for fan", message="m", target_type="specific_user", user_id=fan.id,
        ))
        storage.create_notification(schemas.NotificationCreate(
            title="artists", message="m", target_type="artists_only",
        ))

        assert sorted(n.title for n in storage.get_user_notifications(fan.id)) == ["everyone", "for fan"]
        assert sorted(n.title for n in storage.get_user_notifications(singer.id)) == ["artists", "everyone"]


class TestChatMessages:

    def test_create_list_and_soft_delete(self, storage):
        user = storage.create_user("chatter", "hash")
        first = storage.create_chat_message(user.id, "hello")
        second = storage.create_chat_message(user.id, "world")

        assert first.user.username == "chatter"
        assert [m.message for m in storage.get_chat_messages()] == ["hello", "world"]

        assert storage.delete_chat_message(first.id) is True
        assert [m.id for m in storage.get_chat_messages()] == [second.id]
        assert storage.get_chat_message(first.id).is_deleted is True
        assert storage.delete_chat_message(first.id) is False

    def test_unknown_author(self, storage):
        with pytest.raises(NotFound):
            storage.create_chat_message("ghost", "boo")


class TestRefreshTokens:

    def test_store_and_revoke(self, storage):
        user = storage.create_user("demo", "hash")
        storage.store_refresh_token(user.id, "tok", datetime.now(timezone.utc) + timedelta(days=1))
        assert storage.is_refresh_token_active("tok") is True
        storage.revoke_refresh_token("tok")
        assert storage.is_refresh_token_active("tok") is False


class TestLifecycle:

    def test_is_empty(self, storage):
        assert storage.is_empty() is True
        make_artist(storage, "someone")
        assert storage.is_empty() is False


class TestTracks:

    def make_track(self, storage, artist_id, title="Rengoku", **extra):
        return storage.create_track(artist_id, schemas.TrackCreate(
            title=title, audio_url=f"https://example.com/{title}.mp3", **extra,
        ))

    def test_create_and_lookup(self, storage):
        artist = make_artist(storage, "klzinn")
        track = self.make_track(storage, artist.id, genre="Trap", duration=185)

        assert track.artist_id == artist.id
        assert track.created_at is not None
        fetched = storage.get_track(track.id)
        assert fetched.model_dump(exclude={"created_at", "updated_at"}) == track.model_dump(exclude={"created_at", "updated_at"})
        assert fetched.duration == 185
        assert storage.get_track(999) is None

    def test_lists_newest_first(self, storage):
        first_artist = make_artist(storage, "klzinn")
        second_artist = make_artist(storage, "KAISH")
        older = self.make_track(storage, first_artist.id, "one")
        other = self.make_track(storage, second_artist.id, "two")
        newer = self.make_track(storage, first_artist.id, "three")

        assert [t.id for t in storage.get_all_tracks()] == [newer.id, other.id, older.id]
        assert [t.id for t in storage.get_artist_tracks(first_artist.id)] == [newer.id, older.id]
        assert storage.get_artist_tracks(999) == []

    def test_unknown_artist(self, storage):
        with pytest.raises(NotFound):
            self.make_track(storage, 999)

    def test_partial_update_keeps_owner(self, storage):
        artist = make_artist(storage, "klzinn")
        track = self.make_track(storage, artist.id, genre="Trap")

        updated = storage.update_track(track.id, {"title": "Renamed", "artist_id": 42, "genre": None})
        assert updated.title == "Renamed"
        assert updated.artist_id == artist.id
        assert updated.genre is None
        assert updated.audio_url == track.audio_url
        assert storage.update_track(999, {"title": "x"}) is None

    def test_delete_is_hard(self, storage):
        artist = make_artist(storage, "klzinn")
        track = self.make_track(storage, artist.id)
        assert storage.delete_track(track.id) is True
        assert storage.get_track(track.id) is None
        assert storage.get_all_tracks() == []
        assert storage.delete_track(track.id) is False


class TestUserReferences:
    """user_id fields must name an existing user."""

    def test_artist_owner_must_exist(self, storage):
        with pytest.raises(InvalidArgument):
            make_artist(storage, "orphan", user_id="ghost")
        artist = make_artist(storage, "klzinn")
        with pytest.raises(InvalidArgument):
            storage.update_artist(artist.id, {"user_id": "ghost"})
        assert storage.get_artist(artist.id).user_id is None

    def test_notification_target_must_exist(self, storage):
        with pytest.raises(InvalidArgument):
            storage.create_notification(schemas.NotificationCreate(
                title="t", message="m", target_type="specific_user", user_id="ghost",
            ))
        assert storage.get_all_notifications() == []


class TestConstraintErrors:
    """How DatabaseStorage reports constraint violations."""

    def test_unique_violation_is_duplicate_key(self):
        storage = make_database_storage()
        user = storage.create_user("demo", "hash")
        expires = datetime.now(timezone.utc) + timedelta(days=1)
        storage.store_refresh_token(user.id, "tok", expires)
        with pytest.raises(DuplicateKey):
            storage.store_refresh_token(user.id, "tok", expires)

    def test_check_violation_is_invalid_argument(self):
        storage = make_database_storage()
        project = make_project(storage, "Cypher")
        with pytest.raises(InvalidArgument):
            storage.update_project(project.id, {"status": "cancelado"})
        assert storage.get_project(project.id).status == "em_desenvolvimento"
