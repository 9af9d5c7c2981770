import numpy as np
import pytest

from pixelbiquad.frame import PixelFrame, as_frame


class TestPixelFrame:
    def test_dimensions(self):
        frame = PixelFrame(np.zeros((3, 5, 4), dtype=np.uint8))
        assert (frame.width, frame.height, frame.channels) == (5, 3, 4)
        assert frame.size == 60
        assert frame.is_allocated()

    def test_two_dimensional_is_single_channel(self):
        frame = PixelFrame(np.zeros((2, 7), dtype=np.uint8))
        assert frame.shape == (7, 2, 1)

    def test_empty(self):
        frame = PixelFrame.empty()
        assert not frame.is_allocated()
        assert frame.shape == (0, 0, 0)

    def test_allocate(self):
        frame = PixelFrame.allocate(4, 2, 3)
        assert frame.shape == (4, 2, 3)
        assert not frame.data.any()

    def test_rejects_non_uint8(self):
        with pytest.raises(TypeError):
            PixelFrame(np.zeros((2, 2), dtype=np.float32))

    def test_rejects_wrong_rank(self):
        with pytest.raises(ValueError):
            PixelFrame(np.zeros((2, 2, 2, 2), dtype=np.uint8))

    def test_flat_is_row_major_interleaved(self):
        data = np.arange(12, dtype=np.uint8).reshape(2, 2, 3)
        assert list(PixelFrame(data).flat()) == list(range(12))

    def test_flat_of_strided_view(self):
        data = np.arange(16, dtype=np.uint8).reshape(4, 4)[:, ::2]
        assert list(PixelFrame(data).flat()) == [0, 2, 4, 6, 8, 10, 12, 14]

    def test_equality(self):
        a = PixelFrame(np.ones((2, 2), dtype=np.uint8))
        assert a == a.copy()
        assert a != PixelFrame(np.ones((2, 2, 2), dtype=np.uint8))


def test_as_frame_passthrough() -> None:
    frame = PixelFrame.allocate(1, 1, 1)
    assert as_frame(frame) is frame
    assert not as_frame(None).is_allocated()
