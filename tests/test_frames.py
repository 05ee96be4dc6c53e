"""
Tests for framesets and positsets.
"""

import pytest
import numpy as np

from markrig.frames import Frame, Frameset, Positset


class TestFrameset:

    def test_new_frameset_is_all_invalid(self):
        frameset = Frameset(3)
        assert frameset.arity == 3
        assert len(frameset) == 3
        assert not any(frameset.is_valid(cam) for cam in range(3))
        assert frameset.valid_indices() == []

    def test_setting_a_frame_marks_it_valid(self):
        frameset = Frameset(2)
        frame = Frame(timestamp=1.5, image=np.zeros((4, 6), dtype=np.uint8))
        frameset[1] = frame

        assert frameset.is_valid(1)
        assert not frameset.is_valid(0)
        assert frameset[1] is frame

    def test_set_valid_can_invalidate(self):
        frameset = Frameset.from_images([np.zeros((2, 2))])
        frameset.set_valid(0, False)
        assert not frameset.is_valid(0)
        # Payload is kept
        assert frameset[0] is not None

    def test_from_images_skips_none(self):
        frameset = Frameset.from_images([np.zeros((2, 2)), None, np.ones((2, 2))], timestamp=3.0)
        assert frameset.valid_indices() == [0, 2]
        assert frameset[0].timestamp == 3.0

    def test_out_of_range_index(self):
        frameset = Frameset(2)
        with pytest.raises(IndexError):
            frameset[2]
        with pytest.raises(IndexError):
            frameset.is_valid(-1)

    def test_frame_size_is_width_height(self):
        frame = Frame(timestamp=0.0, image=np.zeros((48, 64, 3), dtype=np.uint8))
        assert frame.size == (64, 48)


class TestPositset:

    def test_positions_are_float_pairs(self):
        positset = Positset(2)
        positset[0] = (3, 4)
        assert positset[0].dtype == np.float64
        assert positset[0].shape == (2,)
        assert positset.is_valid(0)

    def test_store_with_explicit_validity(self):
        positset = Positset(1)
        positset.store(0, [1.0, 2.0], valid=False)
        assert not positset.is_valid(0)
        np.testing.assert_array_equal(positset[0], [1.0, 2.0])

    def test_repr_shows_validity(self):
        positset = Positset(2)
        positset[1] = (0, 0)
        assert repr(positset) == "Positset(0:--, 1:ok)"
