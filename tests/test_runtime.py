import tempfile
import unittest
from pathlib import Path

import numpy as np

from darknet_kit.errors import ImageDecodeError
from darknet_kit.postprocess import DarknetPostConfig
from darknet_kit.runtime import DarknetPipeline, network_paths, read_image


class _FakeBackend:
    def __init__(self, outputs):
        self.outputs = outputs
        self.blobs = []
        self.closed = False

    def infer(self, blob):
        self.blobs.append(blob)
        return self.outputs

    def close(self):
        self.closed = True


def _pipeline(outputs, **kwargs) -> DarknetPipeline:
    backend = _FakeBackend(outputs)
    return DarknetPipeline(backend.infer, backend=backend, **kwargs)


class TestDarknetPipeline(unittest.TestCase):
    def test_blob_uses_square_input_size(self) -> None:
        pipe = _pipeline([np.zeros((0, 7), dtype=np.float32)], input_size=320)
        pipe(np.zeros((100, 200, 3), dtype=np.uint8))
        self.assertEqual(pipe.backend.blobs[0].shape, (1, 3, 320, 320))
        self.assertEqual(pipe.backend.blobs[0].dtype, np.float32)

    def test_decode_scales_by_original_frame(self) -> None:
        row = np.array([[0.5, 0.5, 0.1, 0.2, 0.9, 0.05, 0.95]], dtype=np.float32)
        pipe = _pipeline([row])
        dets = pipe(np.zeros((100, 200, 3), dtype=np.uint8))
        self.assertEqual(dets[0].as_xywh(), (90, 40, 20, 20))

    def test_detect_renders_and_reports_kept(self) -> None:
        rows = np.array(
            [
                [0.5, 0.5, 0.4, 0.4, 0.9, 0.05, 0.95],
                [0.5, 0.5, 0.38, 0.38, 0.9, 0.10, 0.85],
                [0.1, 0.1, 0.1, 0.1, 0.9, 0.60, 0.10],
            ],
            dtype=np.float32,
        )
        pipe = _pipeline(
            [rows],
            post_cfg=DarknetPostConfig(score_threshold=0.45, nms_threshold=0.5),
            class_names={0: "cat", 1: "dog"},
        )
        img = np.zeros((100, 100, 3), dtype=np.uint8)
        result = pipe.detect(img)
        self.assertIs(result.image, img)
        self.assertEqual(len(result.detections), 3)
        self.assertEqual(result.kept.class_names, ["dog", "cat"])
        self.assertAlmostEqual(result.kept.confidences[0], 0.95, places=6)
        self.assertAlmostEqual(result.kept.confidences[1], 0.60, places=6)
        self.assertTrue(img.any())

    def test_detect_empty_returns_image_untouched(self) -> None:
        pipe = _pipeline([np.zeros((0, 85), dtype=np.float32)])
        img = np.full((50, 60, 3), 3, dtype=np.uint8)
        before = img.copy()
        result = pipe.detect(img)
        self.assertIs(result.image, img)
        self.assertTrue(np.array_equal(img, before))
        self.assertEqual(result.kept.class_names, [])
        self.assertEqual(result.kept.confidences, [])
        self.assertEqual(len(result.kept), 0)

    def test_detect_all_below_threshold(self) -> None:
        row = np.array([[0.5, 0.5, 0.2, 0.2, 0.9, 0.1, 0.2]], dtype=np.float32)
        pipe = _pipeline([row])
        img = np.zeros((50, 50, 3), dtype=np.uint8)
        result = pipe.detect(img)
        self.assertEqual(len(result.detections), 1)
        self.assertEqual(result.kept_detections, [])
        self.assertFalse(img.any())

    def test_context_manager_closes_backend(self) -> None:
        pipe = _pipeline([])
        with pipe:
            pass
        self.assertTrue(pipe.backend.closed)

    def test_rejects_non_bgr(self) -> None:
        pipe = _pipeline([])
        with self.assertRaises(ValueError):
            pipe(np.zeros((10, 10), dtype=np.uint8))


class TestRuntimeHelpers(unittest.TestCase):
    def test_network_paths(self) -> None:
        weights, cfg = network_paths("yolov4-tiny", "/srv/assets")
        self.assertEqual(weights, Path("/srv/assets/yolov4-tiny.weights"))
        self.assertEqual(cfg, Path("/srv/assets/yolov4-tiny.cfg"))
        with self.assertRaises(ValueError):
            network_paths("", "/srv/assets")

    def test_read_image_errors(self) -> None:
        with self.assertRaises(FileNotFoundError):
            read_image("/nonexistent/dog.jpg")

        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        bogus = Path(tmpdir.name) / "dog.jpg"
        bogus.write_bytes(b"not an image")
        with self.assertRaises(ImageDecodeError):
            read_image(bogus)


if __name__ == "__main__":
    unittest.main()
