"""
Tests for playlist endpoints.

Playlists reference songs; replacing, clearing or deleting a playlist must never
touch the song rows themselves.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def songs(client, listener):
    created = []
    for title in ("S1", "S2", "S3"):
        resp = client.post("/songs", json={"title": title, "duration": 1000}, headers=listener["headers"])
        assert resp.status_code == 201
        created.append(resp.json())
    return created


def _ids(playlist):
    return [s["id"] for s in playlist["songs"]]


class TestPlaylistCreate:
    def test_create_with_songs(self, client, listener, songs) -> None:
        resp = client.post(
            "/playlists", json={"name": "P", "song_ids": [songs[0]["id"], songs[1]["id"]]}, headers=listener["headers"]
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["name"] == "P"
        assert body["user_id"] == listener["user"]["id"]
        assert _ids(body) == [songs[0]["id"], songs[1]["id"]]

    def test_duplicate_song_ids_collapse(self, client, listener, songs) -> None:
        sid = songs[0]["id"]
        resp = client.post("/playlists", json={"name": "Dups", "song_ids": [sid, sid]}, headers=listener["headers"])
        assert resp.status_code == 201
        assert _ids(resp.json()) == [sid]

    def test_unknown_song_is_rejected_and_nothing_created(self, client, listener, songs) -> None:
        resp = client.post(
            "/playlists", json={"name": "Bad", "song_ids": [songs[0]["id"], 987654]}, headers=listener["headers"]
        )
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["field"] == "song_ids"
        assert "987654" in detail["message"]
        assert client.get("/playlists", headers=listener["headers"]).json()["items"] == []

    def test_out_of_range_song_id_is_rejected(self, client, listener, songs) -> None:
        resp = client.post(
            "/playlists", json={"name": "Huge", "song_ids": [songs[0]["id"], 10**20]}, headers=listener["headers"]
        )
        assert resp.status_code == 422
        assert client.get("/playlists", headers=listener["headers"]).json()["items"] == []
        assert client.get(f"/playlists/{10**20}", headers=listener["headers"]).status_code == 422


class TestPlaylistUpdate:
    def test_song_set_is_replaced_not_merged(self, client, listener, songs) -> None:
        s1, s2, s3 = songs
        playlist = client.post(
            "/playlists", json={"name": "P", "song_ids": [s1["id"], s2["id"]]}, headers=listener["headers"]
        ).json()

        resp = client.put(
            f"/playlists/{playlist['id']}", json={"song_ids": [s2["id"], s3["id"]]}, headers=listener["headers"]
        )
        assert resp.status_code == 200
        assert set(_ids(resp.json())) == {s2["id"], s3["id"]}

    def test_name_only_update_keeps_songs(self, client, listener, songs) -> None:
        playlist = client.post(
            "/playlists", json={"name": "Old", "song_ids": [songs[0]["id"]]}, headers=listener["headers"]
        ).json()
        resp = client.put(f"/playlists/{playlist['id']}", json={"name": "New"}, headers=listener["headers"])
        assert resp.status_code == 200
        assert resp.json()["name"] == "New"
        assert _ids(resp.json()) == [songs[0]["id"]]

    def test_update_requires_owned_songs_and_rolls_back(self, client, listener, artist, songs) -> None:
        theirs = client.post("/songs", json={"title": "Theirs", "duration": 1}, headers=artist["headers"]).json()
        playlist = client.post(
            "/playlists", json={"name": "Before", "song_ids": [songs[0]["id"]]}, headers=listener["headers"]
        ).json()

        resp = client.put(
            f"/playlists/{playlist['id']}",
            json={"name": "After", "song_ids": [songs[1]["id"], theirs["id"]]},
            headers=listener["headers"],
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "song_ids"

        after = client.get(f"/playlists/{playlist['id']}", headers=listener["headers"]).json()
        assert after["name"] == "Before"
        assert _ids(after) == [songs[0]["id"]]

    def test_other_users_playlist_is_not_found(self, client, listener, artist, songs) -> None:
        playlist = client.post("/playlists", json={"name": "Mine"}, headers=listener["headers"]).json()
        assert client.get(f"/playlists/{playlist['id']}", headers=artist["headers"]).status_code == 404
        resp = client.put(f"/playlists/{playlist['id']}", json={"name": "Hijack"}, headers=artist["headers"])
        assert resp.status_code == 404


class TestPlaylistDelete:
    def test_delete_keeps_member_songs(self, client, listener, songs) -> None:
        playlist = client.post(
            "/playlists", json={"name": "Temp", "song_ids": [s["id"] for s in songs]}, headers=listener["headers"]
        ).json()

        resp = client.delete(f"/playlists/{playlist['id']}", headers=listener["headers"])
        assert resp.status_code == 200

        assert client.get(f"/playlists/{playlist['id']}", headers=listener["headers"]).status_code == 404
        for song in songs:
            assert client.get(f"/songs/{song['id']}", headers=listener["headers"]).status_code == 200

    def test_song_can_join_a_new_playlist_after_delete(self, client, listener, songs) -> None:
        first = client.post(
            "/playlists", json={"name": "First", "song_ids": [songs[0]["id"]]}, headers=listener["headers"]
        ).json()
        client.delete(f"/playlists/{first['id']}", headers=listener["headers"])
        second = client.post(
            "/playlists", json={"name": "Second", "song_ids": [songs[0]["id"]]}, headers=listener["headers"]
        )
        assert second.status_code == 201
        assert _ids(second.json()) == [songs[0]["id"]]


class TestPlaylistSearch:
    def test_name_search_and_query_precedence(self, client, listener) -> None:
        for name in ("Morning Run", "Evening Chill", "Run Club"):
            client.post("/playlists", json={"name": name}, headers=listener["headers"])

        by_q = client.get("/playlists/search", params={"q": "RUN", "name": "chill"}, headers=listener["headers"]).json()
        assert [p["name"] for p in by_q["items"]] == ["Morning Run", "Run Club"]

        by_name = client.get("/playlists/search", params={"name": "chill"}, headers=listener["headers"]).json()
        assert [p["name"] for p in by_name["items"]] == ["Evening Chill"]

        page = client.get("/playlists/search", params={"limit": "2"}, headers=listener["headers"]).json()
        assert page["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}
