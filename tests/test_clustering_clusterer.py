"""
Tests for spatial event clustering.
"""

import itertools

import pytest

from aerozone.clustering import LocatedEvent, SpatialClusterer
from aerozone.clustering.geometry import is_valid_ring
from aerozone.config import Config
from aerozone.utils import distance_nm


@pytest.fixture
def clusterer():
    """Clusterer with a 10nm threshold."""
    return SpatialClusterer(threshold_nm=10)


@pytest.fixture
def worked_events():
    """Two nearby events and one far away."""
    return [
        LocatedEvent(32.0, 34.9, 5),
        LocatedEvent(32.05, 34.95, 3),
        LocatedEvent(40.0, 40.0, 1),
    ]


@pytest.fixture
def scattered_events():
    """Events forming a chain, a triangle and an outlier."""
    return [
        # Chain: each link ~6nm, ends ~12nm apart
        LocatedEvent(32.0, 35.0, 2),
        LocatedEvent(32.1, 35.0, 1),
        LocatedEvent(32.2, 35.0, 4),
        # Triangle far to the north
        LocatedEvent(34.0, 36.0, 3),
        LocatedEvent(34.05, 36.1, 1),
        LocatedEvent(34.1, 36.0, 2),
        # Outlier
        LocatedEvent(30.0, 33.0, 9),
    ]


class TestLocatedEvent:
    """Tests for LocatedEvent record."""

    def test_from_dict_camel_case(self):
        event = LocatedEvent.from_dict({"lat": 32.0, "lon": 34.9, "count": 4, "avgDuration": 120})
        assert event.count == 4
        assert event.avg_duration_s == 120.0

    def test_from_dict_backend_keys(self):
        event = LocatedEvent.from_dict({"lat": 32.0, "lon": 34.9, "event_count": 7, "avg_duration": 60})
        assert event.count == 7
        assert event.avg_duration_s == 60.0

    def test_defaults(self):
        event = LocatedEvent.from_dict({"lat": 32.0, "lon": 34.9})
        assert event.count == 1
        assert event.avg_duration_s is None

    def test_to_dict(self):
        assert LocatedEvent(32.0, 34.9, 2).to_dict() == {
            "lat": 32.0,
            "lon": 34.9,
            "count": 2,
            "avg_duration_s": None,
        }


class TestSpatialClusterer:
    """Tests for SpatialClusterer class."""

    def test_empty_input(self, clusterer):
        assert clusterer.cluster([]) == []
        assert clusterer.group([]) == []

    def test_worked_example(self, clusterer, worked_events):
        """Two nearby events form one buffer cluster; the far one stands alone."""
        clusters = clusterer.cluster(worked_events)

        assert len(clusters) == 2
        first, second = clusters
        assert first.total_count == 8
        assert first.point_count == 2
        assert first.source == "buffer"
        assert first.centroid == pytest.approx((34.925, 32.025))
        assert second.total_count == 1
        assert second.is_buffer
        assert second.centroid == pytest.approx((40.0, 40.0))

    def test_buffer_radius(self, clusterer):
        """Small thresholds use the radius floor, large ones a third of it."""
        assert clusterer.buffer_radius_nm == 8.0
        assert SpatialClusterer(threshold_nm=60).buffer_radius_nm == 20.0

    def test_buffer_geometry(self, clusterer, worked_events):
        cluster = clusterer.cluster(worked_events)[0]
        assert len(cluster.polygon) == 17
        lon, lat = cluster.polygon[0]
        assert distance_nm(cluster.centroid[1], cluster.centroid[0], lat, lon) == pytest.approx(
            8.0, rel=0.02
        )

    def test_chain_links_transitively(self, clusterer, scattered_events):
        """Single linkage joins events connected through a chain."""
        groups = clusterer.group(scattered_events)
        assert [len(g) for g in groups] == [3, 3, 1]
        assert groups[0][0] is scattered_events[0]
        assert groups[0][2] is scattered_events[2]

    def test_hull_for_three_or_more(self, clusterer, scattered_events):
        clusters = clusterer.cluster(scattered_events)
        triangle = next(c for c in clusters if c.total_count == 6)
        assert triangle is clusters[0]
        assert triangle.source == "hull"
        assert triangle.total_count == 6
        assert len(triangle.polygon) == 4

    def test_degenerate_chain_dropped(self, clusterer, scattered_events):
        """The collinear chain has no hull and is dropped."""
        clusters = clusterer.cluster(scattered_events)
        assert len(clusters) == 2
        assert [c.total_count for c in clusters] == [6, 9]

    def test_groups_in_input_order(self, clusterer):
        events = [
            LocatedEvent(40.0, 40.0, 1),
            LocatedEvent(32.0, 34.9, 1),
            LocatedEvent(40.01, 40.01, 1),
        ]
        groups = clusterer.group(events)
        assert groups[0] == [events[0], events[2]]
        assert groups[1] == [events[1]]

    def test_closure_property(self, clusterer, scattered_events, worked_events):
        """Events within the threshold share a group; separate groups never link."""
        events = scattered_events + worked_events
        groups = clusterer.group(events)
        index = {}
        for g, members in enumerate(groups):
            for member in members:
                index[id(member)] = g

        for a, b in itertools.combinations(events, 2):
            if distance_nm(a.latitude, a.longitude, b.latitude, b.longitude) <= 10:
                assert index[id(a)] == index[id(b)]

    def test_rings_closed(self, clusterer, scattered_events, worked_events):
        for cluster in clusterer.cluster(scattered_events + worked_events):
            assert is_valid_ring(cluster.polygon)

    def test_idempotent(self, clusterer, scattered_events):
        assert clusterer.cluster(scattered_events) == clusterer.cluster(scattered_events)

    def test_from_config(self):
        config = Config()
        config.set("clustering.threshold_nm", 30)
        clusterer = SpatialClusterer.from_config(config)
        assert clusterer.threshold_nm == 30
        assert clusterer.buffer_radius_nm == 10.0


class TestBackendClusters:
    """Tests for adopting backend-computed clusters."""

    @pytest.fixture
    def payload(self):
        return {
            "clusters": [
                {
                    # Open polygon is closed as given
                    "centroid": [35.0, 32.0],
                    "polygon": [[34.9, 31.9], [35.1, 31.9], [35.0, 32.1]],
                    "points": [{"lat": 32.0, "lon": 35.0, "event_count": 4}],
                    "total_events": 11,
                },
                {
                    # No polygon, two points: local buffer
                    "centroid": [36.0, 33.0],
                    "points": [
                        {"lat": 33.0, "lon": 36.0, "event_count": 2},
                        {"lat": 33.01, "lon": 36.01, "event_count": 1},
                    ],
                },
                {
                    # Nothing usable: fixed fallback buffer
                    "centroid": [34.0, 30.0],
                    "points": [],
                },
            ],
            "singles": [{"lat": 31.0, "lon": 34.0, "event_count": 5}],
        }

    def test_backend_polygon_preserved(self, clusterer, payload):
        cluster = clusterer.from_backend(payload)[0]
        assert cluster.source == "backend"
        assert cluster.total_count == 11
        assert cluster.polygon == ((34.9, 31.9), (35.1, 31.9), (35.0, 32.1), (34.9, 31.9))

    def test_missing_polygon_uses_local_geometry(self, clusterer, payload):
        cluster = clusterer.from_backend(payload)[1]
        assert cluster.source == "buffer"
        assert cluster.total_count == 3
        assert cluster.centroid == (36.0, 33.0)

    def test_fallback_buffer(self, clusterer, payload):
        cluster = clusterer.from_backend(payload)[2]
        assert cluster.is_buffer
        lon, lat = cluster.polygon[0]
        assert distance_nm(30.0, 34.0, lat, lon) == pytest.approx(10.0, rel=0.02)

    def test_singles_become_buffers(self, clusterer, payload):
        single = clusterer.from_backend(payload)[-1]
        assert single.is_buffer
        assert single.total_count == 5
        assert single.members[0].avg_duration_s == 300.0
        lon, lat = single.polygon[0]
        assert distance_nm(31.0, 34.0, lat, lon) == pytest.approx(12.0, rel=0.02)

    def test_build_prefers_backend(self, clusterer, payload, worked_events):
        clusters = clusterer.build(worked_events, payload)
        assert len(clusters) == 4
        assert clusters[0].source == "backend"

    def test_build_without_backend(self, clusterer, worked_events):
        assert clusterer.build(worked_events, {"clusters": []}) == clusterer.cluster(worked_events)

    def test_to_dict(self, clusterer, payload):
        record = clusterer.from_backend(payload)[0].to_dict()
        assert record["source"] == "backend"
        assert record["centroid"] == [35.0, 32.0]
        assert record["polygon"][0] == record["polygon"][-1]
