from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np

from .beam import Beam
from .errors import ConfigurationError


# -----------------------------
# Options
# -----------------------------
@dataclass(frozen=True, slots=True)
class SmoothOptions:
    """
    smooth_to_beam の振る舞いを決めるフラグ

      - no_fft               : FFT ではなく直接畳み込みを使う
      - treat_as_uncertainty : 入力をノイズ(1σ)マップとみなし、二乗 → 畳み込み → 平方根 + スケール
      - per_beam_units       : 単位が "per beam" (Jy/beam 等) の場合、ビーム面積比で補正
      - quiet                : 警告・ログ出力を抑制（diagnostics には残る）
      - ncpu                 : cube の各 plane を並列処理するプロセス数
      - point_fraction       : kernel 長軸が pixel の何割未満なら点源とみなすか
    """
    no_fft: bool = False
    treat_as_uncertainty: bool = False
    per_beam_units: bool = False
    quiet: bool = False
    ncpu: int = 1
    point_fraction: float = 0.1

    def __post_init__(self):
        if int(self.ncpu) < 1:
            raise ConfigurationError("ncpu must be >= 1.")
        object.__setattr__(self, "ncpu", int(self.ncpu))
        if not self.point_fraction > 0:
            raise ConfigurationError("point_fraction must be > 0.")

    @property
    def use_fft(self) -> bool:
        return not self.no_fft


# -----------------------------
# Result
# -----------------------------
@dataclass(frozen=True, slots=True)
class ConvolutionResult:
    """
    smooth_to_beam の出力

    data は入力と同じ shape の平滑化後データ（非有限値の位置は入力と同じ）。
    flux_before / flux_after は有限値の和で、uncertainty / per-beam 補正の後の値。
    """
    data: np.ndarray
    header: object
    kernel: np.ndarray
    kernel_beam: Beam
    start_beam: Beam
    target_beam: Beam
    pixel_scale: float   # [arcsec/pix]
    ppbeam_start: float
    ppbeam_final: float
    flux_before: float
    flux_after: float
    near_point_source: bool = False
    kernel_clamped: bool = False
    diagnostics: List[str] = field(default_factory=list)

    @property
    def kernel_size(self) -> int:
        return int(self.kernel.shape[0])

    @property
    def flux_ratio(self) -> Optional[float]:
        if self.flux_before == 0:
            return None
        return self.flux_after / self.flux_before
