import unittest
import numpy as np
from astropy.io import fits

from beamsmooth.beam import Beam
from beamsmooth.errors import ConfigurationError
from beamsmooth.preprocess import (as_beam, resolve_pixel_scale, resolve_start_beam,
                                   mask_nonfinite, restore_nonfinite, square_if_uncertainty)


class TestResolve(unittest.TestCase):
    def test_explicit_pixel_scale_wins(self):
        header = fits.Header({"CDELT2": 1.0 / 3600})
        self.assertEqual(resolve_pixel_scale(header, 0.25), 0.25)

    def test_pixel_scale_from_cdelt2(self):
        header = fits.Header({"CDELT1": 5e-4, "CDELT2": -5e-4})
        self.assertAlmostEqual(resolve_pixel_scale(header), 1.8)

    def test_pixel_scale_from_cd_matrix(self):
        header = {"CD1_1": -1e-4, "CD1_2": 0.0, "CD2_1": 0.0, "CD2_2": 1e-4}
        self.assertAlmostEqual(resolve_pixel_scale(header), 0.36)

    def test_pixel_scale_from_rotated_cd_matrix(self):
        scale, rot = 0.5 / 3600, np.deg2rad(30.0)
        header = fits.Header()
        header["CTYPE1"] = "RA---SIN"
        header["CTYPE2"] = "DEC--SIN"
        header["CD1_1"] = -scale * np.cos(rot)
        header["CD1_2"] = scale * np.sin(rot)
        header["CD2_1"] = scale * np.sin(rot)
        header["CD2_2"] = scale * np.cos(rot)
        self.assertAlmostEqual(resolve_pixel_scale(header), 0.5)

    def test_pixel_scale_zero_in_header(self):
        with self.assertRaises(ConfigurationError):
            resolve_pixel_scale({"CDELT1": 1e-4, "CDELT2": 0.0})

    def test_pixel_scale_missing(self):
        with self.assertRaises(ConfigurationError):
            resolve_pixel_scale({"BMAJ": 1e-3})
        with self.assertRaises(ConfigurationError):
            resolve_pixel_scale(None, None)

    def test_pixel_scale_not_positive(self):
        with self.assertRaises(ConfigurationError):
            resolve_pixel_scale(None, 0.0)
        with self.assertRaises(ConfigurationError):
            resolve_pixel_scale(None, -1.0)

    def test_start_beam_explicit(self):
        b = resolve_start_beam(None, (10.0, 5.0, 30.0))
        self.assertEqual(b, Beam(10.0, 5.0, 30.0))

    def test_start_beam_from_header(self):
        header = {"BMAJ": 10.0 / 3600, "BMIN": 5.0 / 3600, "BPA": 30.0}
        b = resolve_start_beam(header)
        self.assertAlmostEqual(b.major, 10.0)
        self.assertAlmostEqual(b.minor, 5.0)

    def test_start_beam_missing(self):
        with self.assertRaises(ConfigurationError):
            resolve_start_beam({"CDELT2": 1e-4})
        with self.assertRaises(ConfigurationError):
            resolve_start_beam(None)

    def test_as_beam(self):
        b = Beam(1.0, 1.0, 0.0)
        self.assertIs(as_beam(b), b)
        self.assertEqual(as_beam([2, 1, 10]), Beam(2.0, 1.0, 10.0))
        with self.assertRaises(ValueError):
            as_beam([1.0, 2.0])


class TestNonFinite(unittest.TestCase):
    def test_mask_and_restore(self):
        data = np.arange(12, dtype=np.float32).reshape(3, 4)
        data[0, 1] = np.nan
        data[2, 3] = np.inf
        clean, mask = mask_nonfinite(data)

        self.assertEqual(clean.dtype, np.float64)
        self.assertEqual(int(mask.sum()), 2)
        self.assertTrue(mask[0, 1] and mask[2, 3])
        self.assertEqual(clean[0, 1], 0.0)
        self.assertEqual(clean[2, 3], 0.0)
        # input untouched
        self.assertTrue(np.isnan(data[0, 1]))

        out = restore_nonfinite(clean, mask)
        self.assertIs(out, clean)
        np.testing.assert_array_equal(~np.isfinite(out), mask)

    def test_restore_shape_mismatch(self):
        with self.assertRaises(ValueError):
            restore_nonfinite(np.zeros((2, 2)), np.zeros((3, 3), dtype=bool))

    def test_square_if_uncertainty(self):
        data = np.array([1.0, -2.0, 3.0])
        np.testing.assert_array_equal(square_if_uncertainty(data, True), [1.0, 4.0, 9.0])
        self.assertIs(square_if_uncertainty(data, False), data)


if __name__ == "__main__":
    unittest.main()
