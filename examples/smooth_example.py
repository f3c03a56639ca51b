# %%
import numpy as np
import matplotlib.pyplot as plt

from beamsmooth import Beam, SmoothOptions, smooth_to_beam
from beamsmooth.plot import plot_comparison, set_plot_style

# %%
set_plot_style()

# %% [markdown]
# ## Synthetic data
# 2 point sources + an extended blob, observed with a 3" x 2" beam, in Jy/beam.

# %%
rng = np.random.default_rng(111)
ny, nx = 128, 128
pixscale_as = 0.5  # arcsec/pix
start_beam = Beam(3.0, 2.0, 30.0)

sky = np.zeros((ny, nx))
sky[40, 40] = 1.0
sky[80, 90] = 0.5
yy, xx = np.indices((ny, nx))
sky += 0.02 * np.exp(-0.5 * ((xx - 64) ** 2 + (yy - 64) ** 2) / 8.0 ** 2)

# observe with the start beam
obs = smooth_to_beam(sky, start_beam, pixel_scale=pixscale_as, start_beam=(0, 0, 0),
                     options=SmoothOptions(quiet=True)).data
obs += rng.normal(scale=1e-3, size=obs.shape)
obs[0:5, 0:5] = np.nan  # blanked corner

# %% [markdown]
# ## Smooth to a round 6" beam

# %%
target = (6.0, 6.0, 0.0)
result = smooth_to_beam(obs, target, pixel_scale=pixscale_as, start_beam=start_beam)
print(f"kernel: {result.kernel_beam.describe()} ({result.kernel_size} pix)")
print(f"flux before = {result.flux_before:.4f}, after = {result.flux_after:.4f}")

fig = plot_comparison(obs, result)
plt.show()

# %% [markdown]
# ## Noise map
# a flat 1 mJy noise map becomes sqrt(ppbeam_start/ppbeam_final) mJy

# %%
noise = np.full((ny, nx), 1e-3)
noise_res = smooth_to_beam(noise, target, pixel_scale=pixscale_as, start_beam=start_beam,
                           options=SmoothOptions(treat_as_uncertainty=True))
print(f"noise: {noise_res.data[64, 64]*1e3:.3f} mJy "
      f"(expected {np.sqrt(noise_res.ppbeam_start/noise_res.ppbeam_final):.3f})")
