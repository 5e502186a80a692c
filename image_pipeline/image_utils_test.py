# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================


import io
import re
import unittest
from unittest.mock import patch

from PIL import Image as PIL_Image

from image_pipeline import image_utils


def make_image_bytes(width, height, fmt="PNG", mode="RGB"):
    color = (200, 40, 90, 128) if mode == "RGBA" else (200, 40, 90)
    buffer = io.BytesIO()
    PIL_Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


class ComputeTargetSizeTest(unittest.TestCase):

    def test_landscape_is_scaled_to_max_width(self):
        self.assertEqual(image_utils.compute_target_size(2000, 1000), (1200, 600))

    def test_portrait_is_scaled_to_max_height(self):
        self.assertEqual(image_utils.compute_target_size(1000, 3000), (400, 1200))

    def test_square_over_bound_is_scaled(self):
        self.assertEqual(image_utils.compute_target_size(1500, 1500), (1200, 1200))

    def test_within_bound_keeps_size(self):
        self.assertEqual(image_utils.compute_target_size(800, 600), (800, 600))
        self.assertEqual(image_utils.compute_target_size(1200, 1200), (1200, 1200))

    def test_aspect_ratio_preserved_within_rounding(self):
        for width, height in [(4032, 3024), (3000, 1999), (1201, 7), (5, 4000)]:
            target_w, target_h = image_utils.compute_target_size(width, height)
            scale = 1200 / max(width, height)
            self.assertEqual(max(target_w, target_h), 1200)
            self.assertLessEqual(abs(target_w - width * scale), 1)
            self.assertLessEqual(abs(target_h - height * scale), 1)
            self.assertGreaterEqual(min(target_w, target_h), 1)

    def test_custom_bound(self):
        self.assertEqual(
            image_utils.compute_target_size(300, 150, max_dimension=100), (100, 50)
        )

    def test_invalid_size_raises(self):
        with self.assertRaises(ValueError):
            image_utils.compute_target_size(0, 10)


class GenerateFilenameTest(unittest.TestCase):

    def test_format(self):
        name = image_utils.generate_filename(now_ms=1700000000123)
        self.assertRegex(name, r"^1700000000123-[0-9a-z]{6}\.jpg$")

    def test_uses_current_time_by_default(self):
        name = image_utils.generate_filename()
        self.assertIsNotNone(re.match(r"^\d{13}-[0-9a-z]+\.jpg$", name))

    def test_names_differ(self):
        names = {image_utils.generate_filename(now_ms=1) for _ in range(50)}
        self.assertEqual(len(names), 50)


class PrepareImageTest(unittest.TestCase):

    def test_large_image_is_downscaled_to_jpeg(self):
        prepared = image_utils.prepare_image(make_image_bytes(2000, 1000))

        self.assertEqual((prepared.width, prepared.height), (1200, 600))
        self.assertEqual(prepared.content_type, "image/jpeg")
        self.assertTrue(prepared.filename.endswith(".jpg"))
        with PIL_Image.open(io.BytesIO(prepared.payload)) as img:
            self.assertEqual(img.format, "JPEG")
            self.assertEqual(img.size, (1200, 600))

    def test_small_image_keeps_dimensions(self):
        prepared = image_utils.prepare_image(make_image_bytes(640, 480, fmt="JPEG"))
        with PIL_Image.open(io.BytesIO(prepared.payload)) as img:
            self.assertEqual(img.size, (640, 480))

    def test_transparent_png_is_flattened(self):
        prepared = image_utils.prepare_image(
            make_image_bytes(300, 200, fmt="PNG", mode="RGBA")
        )
        with PIL_Image.open(io.BytesIO(prepared.payload)) as img:
            self.assertEqual(img.mode, "RGB")

    def test_quality_is_passed_to_encoder(self):
        raw = make_image_bytes(400, 400)
        with patch.object(PIL_Image.Image, "save", autospec=True) as mock_save:
            image_utils.prepare_image(raw, quality=55)
        _, kwargs = mock_save.call_args
        self.assertEqual(kwargs["format"], "JPEG")
        self.assertEqual(kwargs["quality"], 55)

    def test_undecodable_payload_raises(self):
        with self.assertRaises(image_utils.ImagePreparationError):
            image_utils.prepare_image(b"definitely not an image")

    def test_empty_payload_raises(self):
        with self.assertRaises(image_utils.ImagePreparationError):
            image_utils.prepare_image(b"")

    def test_oversized_image_raises_preparation_error(self):
        # Pillow refuses images above twice MAX_IMAGE_PIXELS.
        raw = make_image_bytes(100, 100)
        with patch.object(PIL_Image, "MAX_IMAGE_PIXELS", 1000):
            with self.assertRaises(image_utils.ImagePreparationError):
                image_utils.prepare_image(raw)


class PrepareImageAsyncTest(unittest.IsolatedAsyncioTestCase):

    async def test_runs_pipeline(self):
        prepared = await image_utils.prepare_image_async(
            make_image_bytes(1300, 2600), max_dimension=1200
        )
        self.assertEqual((prepared.width, prepared.height), (600, 1200))


if __name__ == "__main__":
    unittest.main()
