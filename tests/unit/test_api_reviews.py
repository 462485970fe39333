from filmify.main import app
from filmify.services.review_platforms import RawReview, ReviewPlatformClient, get_review_platform_client


def post_review(client, movie_id, rating, source=None):
    return client.post("/api/reviews", json={
        "movie_id": movie_id,
        "rating": rating,
        "content": "Worth a watch.",
        "source": source,
    })


def test_aggregate_endpoint(client, make_movie):
    movie = make_movie()
    post_review(client, movie.id, 8)
    post_review(client, movie.id, 6)
    post_review(client, movie.id, 9, source="imdb")

    response = client.get("/api/reviews/aggregate", params={"movie_id": movie.id})

    body = response.json()
    assert response.status_code == 200
    assert body["average_rating"] == 8.3
    assert body["total_reviews"] == 3
    assert body["platform_breakdown"]["users"]["average_rating"] == 7.0
    assert body["platform_breakdown"]["imdb"]["name"] == "IMDb"
    assert body["distribution"] == {"5": 1, "4": 1, "3": 1, "2": 0, "1": 0}


def test_aggregate_without_reviews(client, make_movie):
    movie = make_movie()

    body = client.get("/api/reviews/aggregate", params={"movie_id": movie.id}).json()

    assert body["average_rating"] == 0
    assert body["distribution"] == {"5": 0, "4": 0, "3": 0, "2": 0, "1": 0}


def test_aggregate_unknown_movie(client):
    assert client.get("/api/reviews/aggregate", params={"movie_id": "missing"}).status_code == 404


def test_review_rating_bounds(client, make_movie):
    movie = make_movie()

    assert post_review(client, movie.id, 11).status_code == 422
    assert post_review(client, movie.id, 0).status_code == 422
    assert post_review(client, "missing", 5).status_code == 404


def test_list_reviews_with_plain_average(client, make_movie):
    movie = make_movie()
    post_review(client, movie.id, 8)
    post_review(client, movie.id, 6)

    body = client.get("/api/reviews", params={"movie_id": movie.id}).json()

    assert len(body["reviews"]) == 2
    assert body["aggregated_rating"]["average"] == 7.0
    assert body["aggregated_rating"]["count"] == 2
    assert body["pagination"]["total"] == 2


def test_sync_skips_failing_platform(client, make_movie):
    class DownForGoogle(ReviewPlatformClient):
        async def fetch_reviews(self, platform, movie):
            if platform == "google":
                raise TimeoutError("google timed out")
            return [RawReview(rating=90, title=None, content="Great")]

    app.dependency_overrides[get_review_platform_client] = lambda: DownForGoogle()
    movie = make_movie()

    response = client.put("/api/reviews/sync", json={"movie_id": movie.id, "platforms": ["google", "metacritic"]})

    assert response.status_code == 200
    assert response.json()["synced_count"] == 1
    aggregate = client.get("/api/reviews/aggregate", params={"movie_id": movie.id}).json()
    assert list(aggregate["platform_breakdown"]) == ["metacritic"]
    assert aggregate["average_rating"] == 9.0


def test_sync_with_canned_platforms(client, make_movie):
    movie = make_movie()

    response = client.put("/api/reviews/sync", json={"movie_id": movie.id, "platforms": ["imdb", "rotten_tomatoes"]})

    assert response.json()["synced_count"] == 4


def test_sync_rejects_unknown_platform_name(client, make_movie):
    movie = make_movie()

    response = client.put("/api/reviews/sync", json={"movie_id": movie.id, "platforms": ["letterboxd"]})

    assert response.status_code == 422
