"""
Tests for bucket path resolution.
"""

import pytest

from bucketrpc.service import NOT_FOUND, Found, NotFound, resolve


@pytest.fixture
def tree(store):
    """Provide a store holding a -> b -> c and a sibling x."""
    with store.begin(write=True) as tx:
        a = tx.create_bucket_if_not_exists(b"a")
        b = a.create_bucket_if_not_exists(b"b")
        b.create_bucket_if_not_exists(b"c").put(b"k", b"deep")
        tx.create_bucket_if_not_exists(b"x")
    return store


class TestResolve:
    """Tests for resolve()."""

    def test_single_level(self, tree):
        """Test resolving a root-level bucket."""
        with tree.begin(write=False) as tx:
            resolution = resolve(tx, [b"a"])
            assert isinstance(resolution, Found)
            assert resolution.bucket.id == tx.bucket(b"a").id

    def test_deep_path(self, tree):
        """Test resolving a path several levels deep."""
        with tree.begin(write=False) as tx:
            resolution = resolve(tx, [b"a", b"b", b"c"])
            assert isinstance(resolution, Found)
            assert resolution.bucket.get(b"k") == b"deep"

    def test_missing_root(self, tree):
        """Test that a missing first level fails."""
        with tree.begin(write=False) as tx:
            assert resolve(tx, [b"missing"]) is NOT_FOUND

    @pytest.mark.parametrize(
        "path",
        [
            [b"a", b"missing"],
            [b"a", b"missing", b"c"],
            [b"a", b"b", b"c", b"missing"],
            [b"missing", b"b", b"c"],
        ],
    )
    def test_missing_level_anywhere(self, tree, path):
        """Test that a missing level at any depth fails as a whole."""
        with tree.begin(write=False) as tx:
            assert isinstance(resolve(tx, path), NotFound)

    def test_order_matters(self, tree):
        """Test that path order is significant."""
        with tree.begin(write=False) as tx:
            assert resolve(tx, [b"b", b"a"]) is NOT_FOUND

    def test_sibling_is_not_child(self, tree):
        """Test that a root-level bucket is not reachable as a child."""
        with tree.begin(write=False) as tx:
            assert resolve(tx, [b"a", b"x"]) is NOT_FOUND

    def test_key_is_not_bucket(self, tree):
        """Test that a key name does not resolve as a bucket."""
        with tree.begin(write=False) as tx:
            assert resolve(tx, [b"a", b"b", b"c", b"k"]) is NOT_FOUND

    def test_empty_path_rejected(self, tree):
        """Test that an empty path is invalid input."""
        with tree.begin(write=False) as tx:
            with pytest.raises(ValueError):
                resolve(tx, [])

    def test_never_creates(self, tree):
        """Test that a failed resolution in a write transaction creates nothing."""
        with tree.begin(write=True) as tx:
            resolve(tx, [b"new", b"path"])

        with tree.begin(write=False) as tx:
            assert tx.bucket(b"new") is None
