import threading
import time

import httpx
import pytest

from delivery_routing.exceptions import GeocodeNotFound, GeocodeProviderFailure
from delivery_routing.models.domain import Coordinate
from delivery_routing.schemas.providers import NominatimCandidate
from delivery_routing.services.geocoding import GeocodeCache, Geocoder, NominatimProvider, PhotonProvider, load_geodata
from delivery_routing.services.geocoding import service as geocoding_service
from delivery_routing.services.geocoding.gazetteer import Gazetteer, parse_geodata
from delivery_routing.services.geocoding.providers import select_best_candidate
from delivery_routing.services.throttle import unthrottled

UNKNOWN_ADDRESS = "12 avenue habib bourguiba monastir"
SOUSSE_CENTER = Coordinate(lat=35.8245, lng=10.6346)
TUNIS_CENTER = Coordinate(lat=36.8065, lng=10.1815)


class CountingProvider:
    name = "counting"

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def search(self, address):
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return self.result


def _geodata_without_gazetteer():
    return parse_geodata(
        {
            "country": {"name": "Tunisia", "code": "tn", "default_centroid": {"lat": 36.8065, "lng": 10.1815}},
            "target_region": {
                "name": "Sousse",
                "locality": "sousse",
                "centroid": {"lat": 35.8245, "lng": 10.6346},
                "bounds": {"south": 35.7, "north": 35.95, "west": 10.5, "east": 10.7},
            },
            "gazetteer": [],
            "regions": {},
        }
    )


def test_gazetteer_exact_match_beats_substring_match():
    gazetteer = Gazetteer(
        [
            ("boulevard du 14 janvier sousse corniche", Coordinate(lat=35.8335, lng=10.638)),
            ("sousse corniche", Coordinate(lat=35.84, lng=10.64)),
        ]
    )

    key, coordinate = gazetteer.lookup("  Sousse Corniche ")

    assert key == "sousse corniche"
    assert coordinate == Coordinate(lat=35.84, lng=10.64)


def test_gazetteer_substring_and_keyword_matches():
    gazetteer = load_geodata().gazetteer

    key, _ = gazetteer.lookup("Residence les pins, Port El Kantaoui")
    assert key == "port el kantaoui"

    key, coordinate = gazetteer.lookup("khzema est")
    assert key == "rue imam abou hanifa khzema est sousse"
    assert coordinate == Coordinate(lat=35.828, lng=10.595)

    key, _ = gazetteer.lookup("avenue imam abou hanifa")
    assert key == "rue imam abou hanifa khzema est sousse"

    assert gazetteer.lookup(UNKNOWN_ADDRESS) is None


def test_resolve_caches_by_normalized_input():
    provider = CountingProvider(result=Coordinate(lat=35.77, lng=10.82))
    geocoder = Geocoder(providers=[provider], cache=GeocodeCache())

    first = geocoder.resolve(UNKNOWN_ADDRESS)
    second = geocoder.resolve(f"  {UNKNOWN_ADDRESS.upper()}  ")

    assert first == second == Coordinate(lat=35.77, lng=10.82)
    assert len(provider.calls) == 1


def test_gazetteer_hit_skips_providers_and_is_cached():
    provider = CountingProvider(result=Coordinate(lat=35.0, lng=10.0))
    cache = GeocodeCache()
    geocoder = Geocoder(providers=[provider], cache=cache)

    coordinate = geocoder.resolve("Sahloul")

    assert coordinate == Coordinate(lat=35.8484, lng=10.5986)
    assert provider.calls == []
    assert cache.get("sahloul") == coordinate


def test_failing_provider_falls_through_to_next():
    broken = CountingProvider(error=GeocodeProviderFailure("boom"))
    working = CountingProvider(result=Coordinate(lat=35.81, lng=10.61))
    geocoder = Geocoder(providers=[broken, working], cache=GeocodeCache())

    assert geocoder.resolve(UNKNOWN_ADDRESS) == Coordinate(lat=35.81, lng=10.61)
    assert len(broken.calls) == 1
    assert len(working.calls) == 1


def test_resolve_raises_not_found_when_every_tier_fails():
    geocoder = Geocoder(providers=[CountingProvider(), CountingProvider()], cache=GeocodeCache())

    with pytest.raises(GeocodeNotFound):
        geocoder.resolve(UNKNOWN_ADDRESS)


def test_resolve_with_fallback_uses_city_then_country_centroid():
    cache = GeocodeCache()
    geocoder = Geocoder(geodata=_geodata_without_gazetteer(), providers=[CountingProvider()], cache=cache)

    assert geocoder.resolve_with_fallback("rue inconnue, Sousse") == SOUSSE_CENTER
    assert geocoder.resolve_with_fallback("rue inconnue, Gafsa") == TUNIS_CENTER
    assert len(cache) == 0


def _candidate(lat, lon, name, place_type=None):
    return NominatimCandidate(lat=lat, lon=lon, display_name=name, type=place_type)


def test_out_of_region_candidate_is_never_selected():
    region = load_geodata().target_region
    candidates = [
        _candidate(36.80, 10.18, "Rue de Sousse, Tunis, Tunisie", "house"),
        _candidate(35.83, 10.63, "Avenue Habib Bourguiba, Sousse, Tunisie", "road"),
    ]

    best = select_best_candidate(candidates, "avenue habib bourguiba", region)

    assert best is candidates[1]


def test_candidate_scoring_prefers_landmarks_and_keeps_provider_order_on_ties():
    region = load_geodata().target_region
    plain = _candidate(35.83, 10.63, "Rue A, Sousse", "road")
    same_score = _candidate(35.83, 10.63, "Rue B, Sousse", "road")
    landmark = _candidate(35.80, 10.62, "Corniche, Sousse", "road")

    assert select_best_candidate([plain, same_score], "rue", region) is plain
    assert select_best_candidate([plain, landmark], "la corniche", region) is landmark
    assert select_best_candidate([_candidate(35.83, 10.63, "Monastir", "house")], "x", region) is None


def test_nominatim_provider_queries_variants_until_a_match():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["q"])
        assert request.url.params["countrycodes"] == "tn"
        assert request.url.params["viewbox"] == "10.5,35.7,10.7,35.9"
        assert request.headers["User-Agent"]
        if len(seen) < 3:
            return httpx.Response(200, json=[])
        return httpx.Response(
            200,
            json=[
                {"lat": "36.81", "lon": "10.18", "display_name": "Sousse street, Tunis", "type": "house"},
                {"lat": "35.826", "lon": "10.636", "display_name": "Rue X, Sousse, Tunisie", "type": "road"},
            ],
        )

    geodata = load_geodata()
    provider = NominatimProvider(
        geodata.target_region,
        geodata.country,
        base_url="http://nominatim.test",
        throttle=unthrottled(),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    coordinate = provider.search("rue x")

    assert coordinate == Coordinate(lat=35.826, lng=10.636)
    assert seen == ["rue x, Sousse, Tunisia", "rue x, Sousse", "rue x, Tunisia"]


def test_nominatim_transport_error_raises_provider_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    geodata = load_geodata()
    provider = NominatimProvider(
        geodata.target_region,
        geodata.country,
        base_url="http://nominatim.test",
        throttle=unthrottled(),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(GeocodeProviderFailure):
        provider.search("rue x")


def test_photon_provider_accepts_first_feature_inside_bounds():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "rue y, Sousse, Tunisia"
        return httpx.Response(
            200,
            json={
                "features": [
                    {"geometry": {"coordinates": [10.18, 36.80]}, "properties": {"name": "Tunis"}},
                    {"geometry": {"coordinates": [10.61, 35.84]}, "properties": {"name": "Rue Y"}},
                ]
            },
        )

    geodata = load_geodata()
    provider = PhotonProvider(
        geodata.target_region,
        geodata.country,
        base_url="http://photon.test",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    assert provider.search("rue y") == Coordinate(lat=35.84, lng=10.61)


def test_cache_lru_bound_evicts_least_recently_used():
    cache = GeocodeCache(max_entries=2)
    cache.put("A", Coordinate(lat=1.0, lng=1.0))
    cache.put("B", Coordinate(lat=2.0, lng=2.0))
    cache.get("a")
    cache.put("C", Coordinate(lat=3.0, lng=3.0))

    assert cache.get("a") is not None
    assert cache.get("b") is None
    assert len(cache) == 2


def test_extra_landmarks_extend_scoring_table():
    raw = {
        "country": {"name": "Tunisia", "code": "TN", "default_centroid": {"lat": 36.8065, "lng": 10.1815}},
        "target_region": {
            "name": "Sousse",
            "centroid": {"lat": 35.8245, "lng": 10.6346},
            "bounds": {"south": 35.7, "north": 35.95, "west": 10.5, "east": 10.7},
            "landmarks": [["corniche", "corniche"]],
        },
    }

    geodata = parse_geodata(raw, ["Medina", "souk:market"])

    assert geodata.country.code == "tn"
    assert geodata.target_region.locality == "sousse"
    assert geodata.target_region.landmarks == (("corniche", "corniche"), ("medina", "medina"), ("souk", "market"))


def test_invalid_geodata_document_is_rejected():
    with pytest.raises(ValueError):
        parse_geodata({"country": {}})


def test_shared_cache_is_created_once_under_concurrent_first_use(monkeypatch):
    created = []

    class SlowCache(GeocodeCache):
        def __init__(self, max_entries=None):
            time.sleep(0.05)
            super().__init__(max_entries)
            created.append(self)

    monkeypatch.setattr(geocoding_service, "_shared_cache", None)
    monkeypatch.setattr(geocoding_service, "GeocodeCache", SlowCache)
    barrier = threading.Barrier(8)
    results = []

    def first_use():
        barrier.wait()
        results.append(geocoding_service.get_shared_cache())

    threads = [threading.Thread(target=first_use) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(created) == 1
    assert all(cache is created[0] for cache in results)
    assert len(results) == 8
