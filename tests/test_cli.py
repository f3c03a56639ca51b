import unittest
import tempfile
from pathlib import Path
import numpy as np
from astropy.io import fits

from beamsmooth.cli import main, parse_args


def write_input(path, bmaj_as=2.0):
    y, x = np.mgrid[0:40, 0:40]
    data = np.exp(-0.5 * ((x - 20.0) ** 2 + (y - 20.0) ** 2) / 4.0)
    header = fits.Header()
    header["CDELT1"] = -1.0 / 3600
    header["CDELT2"] = 1.0 / 3600
    header["BMAJ"] = bmaj_as / 3600
    header["BMIN"] = bmaj_as / 3600
    header["BPA"] = 0.0
    fits.PrimaryHDU(data=data, header=header).writeto(path)
    return data


class TestCLI(unittest.TestCase):
    def test_parse_args(self):
        args = parse_args(["in.fits", "--beam", "10", "8", "30", "--no-fft", "--uncertainty", "--ncpu", "2"])
        self.assertEqual(args.beam, [10.0, 8.0, 30.0])
        self.assertTrue(args.no_fft)
        self.assertTrue(args.uncertainty)
        self.assertFalse(args.per_beam)
        self.assertEqual(args.ncpu, 2)
        self.assertIsNone(args.start_beam)

    def test_beam_is_required(self):
        with self.assertRaises(SystemExit):
            parse_args(["in.fits"])

    def test_writes_output(self):
        with tempfile.TemporaryDirectory() as td:
            infile = Path(td) / "in.fits"
            outfile = Path(td) / "out.fits"
            data = write_input(infile)
            status = main([str(infile), "--beam", "5", "5", "0", "--outfile", str(outfile), "--quiet"])
            self.assertEqual(status, 0)
            out, header = fits.getdata(outfile, header=True)
        self.assertAlmostEqual(header["BMAJ"], 5.0 / 3600)
        self.assertAlmostEqual(float(out.sum()), float(data.sum()), places=6)

    def test_explicit_start_beam_and_pixel_scale(self):
        with tempfile.TemporaryDirectory() as td:
            infile = Path(td) / "in.fits"
            outfile = Path(td) / "out.fits"
            write_input(infile)
            status = main([str(infile), "--beam", "5", "5", "0", "--start-beam", "0", "0", "0",
                           "--pixel-scale", "0.5", "--outfile", str(outfile), "--quiet"])
            self.assertEqual(status, 0)
            self.assertTrue(outfile.exists())

    def test_incompatible_beam_exit_status(self):
        with tempfile.TemporaryDirectory() as td:
            infile = Path(td) / "in.fits"
            outfile = Path(td) / "out.fits"
            write_input(infile, bmaj_as=6.0)
            status = main([str(infile), "--beam", "3", "3", "0", "--outfile", str(outfile)])
            self.assertEqual(status, 2)
            self.assertFalse(outfile.exists())

    def test_missing_input_exit_status(self):
        with tempfile.TemporaryDirectory() as td:
            status = main([str(Path(td) / "missing.fits"), "--beam", "5", "5", "0", "--quiet"])
        self.assertEqual(status, 1)

    def test_one_dimensional_input_exit_status(self):
        with tempfile.TemporaryDirectory() as td:
            infile = Path(td) / "spectrum.fits"
            fits.PrimaryHDU(data=np.arange(16.0)).writeto(infile)
            status = main([str(infile), "--beam", "5", "5", "0", "--start-beam", "2", "2", "0",
                           "--pixel-scale", "1", "--quiet"])
        self.assertEqual(status, 1)

    def test_existing_outfile_without_overwrite(self):
        with tempfile.TemporaryDirectory() as td:
            infile = Path(td) / "in.fits"
            outfile = Path(td) / "out.fits"
            write_input(infile)
            outfile.write_bytes(b"keep")
            status = main([str(infile), "--beam", "5", "5", "0", "--outfile", str(outfile), "--quiet"])
            self.assertEqual(status, 1)
            self.assertEqual(outfile.read_bytes(), b"keep")


if __name__ == "__main__":
    unittest.main()
