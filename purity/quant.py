import collections
import concurrent.futures
import warnings
import numpy as np
import pandas as pd
import scipy.optimize
import tqdm
import termcolor
import matplotlib.pyplot as plt
import seaborn as sns
from .model import PARAM_ORDER, MixtureParameters, log_normal_pdf, mixture_pdf
from .exceptions import InvalidInputError, FitConvergenceError, AggregationError

DEFAULT_START_GUESS = {'mu1': -1.2, 'sigma1': 0.2, 'a1': 2,
                       'mu2': -0.5, 'sigma2': 0.2, 'a2': 7}

DEFAULT_PARAM_BOUNDS = {'mu1': [-2.5, -0.1], 'sigma1': [0.1, 0.5], 'a1': [0.1, 10],
                        'mu2': [-1.5, 0.5], 'sigma2': [0.1, 0.5], 'a2': [0.1, 10]}


class FitConfig:
    """
    Settings shared by every fit of a pipeline invocation.

    Attributes
    ----------
    n_fractions : `int`
        The number of fractions the dense curve is partitioned into.
    step_n : `int`
        The number of dense curve points per fraction.
    range_max : `float`
        The upper bound of the elution volume axis of the dense curve.
    n_points : `int`
        The number of points of the dense curve.
    start_guess : `dict`
        The initial value of each mixture parameter.
    param_bounds : `dict`
        The `[lower, upper]` bounds of each mixture parameter.
    max_iter : `int`
        The maximum number of function evaluations of a single fit.
    optimizer_kwargs : `dict`
        Keyword arguments passed to `scipy.optimize.least_squares`.
    """

    def __init__(self,
                 n_fractions=13,
                 step_n=100,
                 range_max=1.5,
                 start_guess={},
                 param_bounds={},
                 max_iter=10000,
                 n_points=None,
                 optimizer_kwargs={}):
        """
        Parameters
        ----------
        n_fractions : positive `int`
            Number of fractions. Default is 13.
        step_n : positive `int`
            Number of dense curve points per fraction. Default is 100.
        range_max : positive `float`
            Upper bound of the dense curve. Default is 1.5 volume units. The
            lower bound is `range_max / (10 * step_n)`.
        start_guess : `dict`
            Modifications to the default initial guess as `parameter: value`.
        param_bounds : `dict`
            Modifications to the default bounds as `parameter: [lower, upper]`.
        max_iter : positive `int`
            The maximum number of function evaluations before a fit is
            declared unconverged. Default is 10^4.
        n_points : positive `int`, optional
            The number of dense curve points. If None, `n_fractions * step_n`
            points are used. Surplus points are assigned to the last fraction,
            a shortfall leaves the last fraction(s) with fewer points.
        optimizer_kwargs : `dict`
            Additional arguments to be passed to `scipy.optimize.least_squares`.
        """
        if n_points is None:
            n_points = n_fractions * step_n
        for name, val in [('n_fractions', n_fractions), ('step_n', step_n),
                          ('n_points', n_points), ('max_iter', max_iter)]:
            if (int(val) != val) or (val < 1):
                raise ValueError(f'`{name}` must be a positive integer.')
        if not range_max > 0:
            raise ValueError('`range_max` must be positive.')
        for name, mods in [('start_guess', start_guess), ('param_bounds', param_bounds)]:
            unknown = [k for k in mods.keys() if k not in PARAM_ORDER]
            if len(unknown) > 0:
                raise ValueError(
                    f'Unknown parameter(s) {unknown} in `{name}`. Must be one of {PARAM_ORDER}.')

        self.n_fractions = int(n_fractions)
        self.step_n = int(step_n)
        self.range_max = float(range_max)
        self.n_points = int(n_points)
        self.max_iter = int(max_iter)

        self.start_guess = dict(DEFAULT_START_GUESS)
        self.start_guess.update(start_guess)
        self.param_bounds = {k: list(v) for k, v in DEFAULT_PARAM_BOUNDS.items()}
        for k, v in param_bounds.items():
            if len(v) != 2:
                raise ValueError(
                    f'Bounds for `{k}` must be of length 2 (corresponding to lower and upper bounds).')
            self.param_bounds[k] = list(v)
        for p in PARAM_ORDER:
            lower, upper = self.param_bounds[p]
            if lower >= upper:
                raise ValueError(
                    f'Lower bound of `{p}` must be < upper bound. Provided bounds are [{lower}, {upper}].')
            if not (lower <= self.start_guess[p] <= upper):
                raise ValueError(
                    f'Initial guess of `{p}` ({self.start_guess[p]}) lies outside of its bounds [{lower}, {upper}].')

        self.optimizer_kwargs = {'ftol': 1E-10, 'xtol': 1E-10, 'gtol': 1E-10}
        self.optimizer_kwargs.update(optimizer_kwargs)

    def __repr__(self):
        return (f'FitConfig(n_fractions={self.n_fractions}, step_n={self.step_n}, '
                f'range_max={self.range_max}, n_points={self.n_points}, '
                f'max_iter={self.max_iter})')

    @property
    def p0(self):
        """The initial guess in `PARAM_ORDER`."""
        return [self.start_guess[p] for p in PARAM_ORDER]

    @property
    def bounds(self):
        """The lower and upper bounds in `PARAM_ORDER`."""
        return ([self.param_bounds[p][0] for p in PARAM_ORDER],
                [self.param_bounds[p][1] for p in PARAM_ORDER])


_FIT_FIELDS = ['name', 'params', 'curve', 'fractions', 'resolution',
               'ordered', 'reconstruction_score', 'error']


class FitResult(collections.namedtuple('FitResult', _FIT_FIELDS)):
    """
    The fit of a single trace and every quantity derived from it.

    Attributes
    ----------
    name : `str`
        The sample name.
    params : `MixtureParameters` or None
        The fitted mixture parameters.
    curve : `pandas.core.frame.DataFrame` or None
        The dense curve with columns `x`, `y1`, `y2`, `total`, `fraction`,
        and `contamination`.
    fractions : `pandas.core.frame.DataFrame` or None
        The per-fraction sums and purity. See `compute_fraction_purity`.
    resolution : `float`
        The chromatographic resolution of the two components. NaN if undefined.
    ordered : `bool` or None
        Whether component 1 elutes before component 2 (`mu1 < mu2`).
    reconstruction_score : `float`
        Ratio of the inferred to the observed signal area. See
        `score_reconstruction`.
    error : `str` or None
        The reason the sample failed, if it did.
    """
    __slots__ = ()

    @classmethod
    def failed(cls, name, error):
        return cls(name, None, None, None, np.nan, None, np.nan, str(error))

    @property
    def success(self):
        return self.error is None

    @property
    def purity(self):
        if self.fractions is None:
            return None
        return self.fractions['purity'].values


AggregateResult = collections.namedtuple(
    'AggregateResult', ['volume', 'mean_trace', 'trace_std', 'mean_purity',
                        'purity_std', 'mean_fit', 'table'])
AggregateResult.__doc__ = """
Statistics of a batch of samples. `mean_trace` and `trace_std` are indexed
like the input table, `mean_purity` and `purity_std` by fraction. `mean_fit`
is the `FitResult` of the mean trace and `table` the combined output table.
"""


def _validate_volume(volume):
    volume = np.asarray(volume, dtype=float)
    if volume.ndim != 1:
        raise InvalidInputError('Volumes must be one-dimensional.')
    if len(volume) == 0:
        raise InvalidInputError('Trace is empty.')
    if not np.isfinite(volume).all():
        raise InvalidInputError('Volumes must be finite.')
    if (volume <= 0).any():
        raise InvalidInputError('Volumes must be positive.')
    if (np.diff(volume) <= 0).any():
        raise InvalidInputError('Volumes must be strictly increasing.')
    return volume


def _check_samples(samples):
    duplicated = pd.Index(samples)[pd.Index(samples).duplicated()]
    if len(duplicated) > 0:
        raise InvalidInputError(
            f'Sample name(s) {list(duplicated.unique())} appear more than once.')


def validate_trace(volume, signal):
    """
    Checks an elution trace and drops unmeasured (NaN) signal values.

    Parameters
    ----------
    volume : array-like
        The elution volumes, positive and strictly increasing.
    signal : array-like
        The measured signal at each volume.

    Returns
    -------
    volume, signal : `numpy.ndarray`
        The volumes and signals of the measured points.

    Raises
    ------
    InvalidInputError
        If the volumes are invalid, the lengths differ, or fewer measured
        points than mixture parameters remain.
    """
    volume = _validate_volume(volume)
    signal = np.asarray(signal, dtype=float)
    if signal.shape != volume.shape:
        raise InvalidInputError(
            f'Trace has {len(volume)} volumes but signal of shape {signal.shape}.')
    measured = np.isfinite(signal)
    if measured.sum() < len(PARAM_ORDER):
        raise InvalidInputError(
            f'Trace has {measured.sum()} measured point(s). At least {len(PARAM_ORDER)} are needed.')
    return volume[measured], signal[measured]


def fit_mixture(volume, signal, config=None):
    R"""
    Estimates the parameters of the two log-normal components of a trace.

    Parameters
    ----------
    volume : array-like
        The elution volumes of the trace.
    signal : array-like
        The observed signal of the trace.
    config : `FitConfig`, optional
        The initial guess, bounds, and evaluation budget. If None, defaults
        are used.

    Returns
    -------
    params : `MixtureParameters`
        The parameters minimizing the sum of squared residuals.

    Raises
    ------
    FitConvergenceError
        If the evaluation budget is exhausted before the tolerances are met,
        or the Jacobian at the solution is singular.

    Notes
    -----
    The bounded minimization is performed with the Trust Region Reflective
    algorithm of `scipy.optimize.least_squares`. The component ordering
    (`mu1 < mu2`) is not enforced; see `fit_trace`.
    """
    if config is None:
        config = FitConfig()
    volume, signal = validate_trace(volume, signal)

    def _residuals(params):
        return mixture_pdf(volume, *params, clip=True) - signal

    res = scipy.optimize.least_squares(_residuals, config.p0,
                                       bounds=config.bounds,
                                       method='trf',
                                       max_nfev=config.max_iter,
                                       **config.optimizer_kwargs)
    if not res.success:
        raise FitConvergenceError(
            f'Optimal parameters not found after {res.nfev} evaluations: {res.message}')
    if np.linalg.matrix_rank(res.jac) < len(PARAM_ORDER):
        raise FitConvergenceError(
            'Jacobian is singular at the solution. Mixture parameters are not identifiable.')
    return MixtureParameters(*res.x)


def evaluate_curve(params, config=None):
    """
    Evaluates the fitted components on an evenly spaced volume grid and
    assigns each point to a fraction.

    Parameters
    ----------
    params : `MixtureParameters` or sequence of 6 floats
        The mixture parameters.
    config : `FitConfig`, optional
        The grid and fraction settings. If None, defaults are used.

    Returns
    -------
    curve : `pandas.core.frame.DataFrame`
        A DataFrame with columns `x`, `y1` and `y2` (the component densities),
        `total`, `fraction` (1-indexed), and `contamination`, the ratio
        `y2 / total` which is NaN where the total density is zero.
    """
    if config is None:
        config = FitConfig()
    params = MixtureParameters(*params)
    x = np.linspace(config.range_max / (10 * config.step_n), config.range_max,
                    config.n_points)
    y1 = log_normal_pdf(x, params.mu1, params.sigma1, params.a1)
    y2 = log_normal_pdf(x, params.mu2, params.sigma2, params.a2)
    total = y1 + y2
    fraction = np.minimum(np.arange(len(x)) // config.step_n + 1,
                          config.n_fractions)
    contamination = np.full_like(total, np.nan)
    np.divide(y2, total, out=contamination, where=total > 0)
    return pd.DataFrame({'x': x, 'y1': y1, 'y2': y2, 'total': total,
                         'fraction': fraction, 'contamination': contamination})


def compute_fwhm(x, y):
    """
    Computes the full width at half maximum of a single peak.

    The half maximum crossings on either side of the maximum are linearly
    interpolated between the bracketing samples. Returns NaN if the curve
    does not fall to half of its maximum on both sides within the sampled range.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if len(y) == 0:
        return np.nan
    peak = np.argmax(y)
    half = y[peak] / 2
    if not half > 0:
        return np.nan
    left_below = np.nonzero(y[:peak] <= half)[0]
    right_below = np.nonzero(y[peak:] <= half)[0]
    if (len(left_below) == 0) | (len(right_below) == 0):
        return np.nan
    i = left_below[-1]
    left = np.interp(half, [y[i], y[i + 1]], [x[i], x[i + 1]])
    j = peak + right_below[0]
    right = np.interp(half, [y[j], y[j - 1]], [x[j], x[j - 1]])
    return right - left


def compute_resolution(x, y1, y2):
    R"""
    Computes the resolution between two peaks sampled on the same grid.

    Notes
    -----
    The resolution is defined as

    .. math::
        R_s = \frac{2 (t_2 - t_1)}{w_1 + w_2}

    where :math:`t_i` is the location of the maximum and :math:`w_i` the
    full width at half maximum of peak :math:`i`. A negative resolution
    means peak 2 elutes first and is reported with a warning.
    """
    x = np.asarray(x, dtype=float)
    w1 = compute_fwhm(x, y1)
    w2 = compute_fwhm(x, y2)
    if not np.isfinite(w1 + w2) or (w1 + w2) <= 0:
        return np.nan
    t1 = x[np.argmax(y1)]
    t2 = x[np.argmax(y2)]
    rs = 2 * (t2 - t1) / (w1 + w2)
    if rs < 0:
        warnings.warn(
            f'Negative resolution (Rs = {rs:0.3f}). Component 2 elutes before component 1.')
    return rs


def compute_fraction_purity(curve, config=None):
    """
    Sums the component densities within each fraction and computes the purity
    of component 1.

    Parameters
    ----------
    curve : `pandas.core.frame.DataFrame`
        The dense curve as returned by `evaluate_curve`.
    config : `FitConfig`, optional
        Provides the number of fractions. If None, defaults are used.

    Returns
    -------
    fractions : `pandas.core.frame.DataFrame`
        One row per fraction with columns `fraction`, `y1`, `y2`, `purity`
        (`y1 / (y1 + y2)`, NaN if there is no modeled signal), `x_center`
        (mean volume of the fraction), `label_y` (annotation height), and
        `n_points`. Fractions without points are kept with zero sums.
    """
    if config is None:
        config = FitConfig()
    grouped = curve.groupby('fraction')
    offset = 0.05 * curve['total'].max()
    fractions = pd.DataFrame({'y1': grouped['y1'].sum(),
                              'y2': grouped['y2'].sum(),
                              'x_center': grouped['x'].mean(),
                              'label_y': grouped['total'].max() + offset,
                              'n_points': grouped.size()})
    fractions = fractions.reindex(np.arange(1, config.n_fractions + 1))
    fractions[['y1', 'y2', 'n_points']] = fractions[[
        'y1', 'y2', 'n_points']].fillna(0)
    fractions['n_points'] = fractions['n_points'].astype(int)

    denom = (fractions['y1'] + fractions['y2']).values
    purity = np.full_like(denom, np.nan)
    np.divide(fractions['y1'].values, denom, out=purity, where=denom > 0)
    fractions['purity'] = purity
    fractions.index.name = 'fraction'
    fractions.reset_index(inplace=True)
    return fractions[['fraction', 'y1', 'y2', 'purity', 'x_center', 'label_y',
                      'n_points']]


def score_reconstruction(volume, signal, params):
    R"""
    Computes the reconstruction score of a fit on the observed volumes,

    .. math::
        R = \frac{\sum_i |\hat{S}_i| + 1}{\sum_i |S_i| + 1}

    where :math:`\hat{S}_i` is the inferred mixture and :math:`S_i` the
    observed signal. A score of 1 is a perfect reconstruction.
    """
    inferred = np.abs(mixture_pdf(volume, *params, clip=True)).sum() + 1
    observed = np.abs(signal).sum() + 1
    return float(inferred / observed)


def fit_trace(name, volume, signal, config=None):
    """
    Fits a single trace and computes the dense curve, fraction purities, and
    resolution.

    Parameters
    ----------
    name : `str`
        The sample name.
    volume : array-like
        The elution volumes.
    signal : array-like
        The observed signal. NaN values are treated as unmeasured.
    config : `FitConfig`, optional
        The pipeline settings. If None, defaults are used.

    Returns
    -------
    result : `FitResult`
        The sample's result. Invalid input or a failed fit do not raise; the
        returned result has no derived quantities and records the error.
    """
    if config is None:
        config = FitConfig()
    try:
        volume, signal = validate_trace(volume, signal)
        params = fit_mixture(volume, signal, config)
    except (InvalidInputError, FitConvergenceError) as err:
        warnings.warn(f'Sample {name} could not be fit: {err}')
        return FitResult.failed(name, err)

    ordered = bool(params.mu1 < params.mu2)
    if not ordered:
        warnings.warn(
            f'Sample {name}: component 1 does not elute first (mu1 = {params.mu1:0.3f} >= mu2 = {params.mu2:0.3f}). Resolution and purity refer to swapped components.')

    curve = evaluate_curve(params, config)
    fractions = compute_fraction_purity(curve, config)
    rs = compute_resolution(curve['x'].values, curve['y1'].values,
                            curve['y2'].values)
    return FitResult(name, params, curve, fractions, rs, ordered,
                     score_reconstruction(volume, signal, params), None)


def fit_traces(table,
               volume_col='volume',
               samples=None,
               config=None,
               verbose=True,
               max_workers=1):
    """
    Fits every sample column of a table.

    Parameters
    ----------
    table : `pandas.core.frame.DataFrame`
        A table with one volume column and one column per sample.
    volume_col : `str`
        The name of the volume column.
    samples : `list`, optional
        The sample columns to fit. If None, all columns but the volume are used.
    config : `FitConfig`, optional
        The pipeline settings. If None, defaults are used.
    verbose : `bool`
        If True, a progress bar will be printed during fitting.
    max_workers : positive `int`
        The number of threads fitting samples concurrently.

    Returns
    -------
    results : `dict`
        The `FitResult` of each sample, keyed and ordered by sample name.
    """
    if config is None:
        config = FitConfig()
    if samples is None:
        samples = [c for c in table.columns if c != volume_col]
    _check_samples(samples)
    volume = table[volume_col].values

    def _fit(name):
        return fit_trace(name, volume, table[name].values, config)

    if max_workers > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            fits = executor.map(_fit, samples)
            if verbose:
                fits = tqdm.tqdm(fits, total=len(samples),
                                 desc='Fitting samples')
            fits = list(fits)
    else:
        if verbose:
            iterator = tqdm.tqdm(samples, desc='Fitting samples')
        else:
            iterator = samples
        fits = [_fit(s) for s in iterator]
    return {s: r for s, r in zip(samples, fits)}


def aggregate_results(table, results, volume_col='volume', config=None):
    """
    Combines per-sample results into mean statistics and the output table.

    Parameters
    ----------
    table : `pandas.core.frame.DataFrame`
        The table the samples were fit from.
    results : `dict`
        The `FitResult` of each sample as returned by `fit_traces`.
    volume_col : `str`
        The name of the volume column.
    config : `FitConfig`, optional
        The pipeline settings used to fit the mean trace.

    Returns
    -------
    aggregate : `AggregateResult`
        The mean trace and its standard deviation over all measured signals,
        the fit of the mean trace, the mean and standard deviation of the
        purity of each fraction over all successfully fit samples, and the
        combined table with columns `volume`, one raw signal column per
        sample, one `<sample>_purity` column per sample, `mean`,
        `mean_purity`, and `purity_std`.

    Raises
    ------
    AggregationError
        If no sample was successfully fit or the samples have different
        numbers of fractions.
    """
    if config is None:
        config = FitConfig()
    succeeded = [r for r in results.values() if r.success]
    if len(succeeded) == 0:
        raise AggregationError(
            'No sample was successfully fit. Nothing to aggregate.')
    n_fractions = set([len(r.fractions) for r in succeeded])
    if len(n_fractions) > 1:
        raise AggregationError(
            f'Samples have inconsistent numbers of fractions: {sorted(n_fractions)}.')
    n_fractions = n_fractions.pop()

    # Statistics of the measured signals, whether or not the sample was fit.
    signals = table[list(results.keys())].astype(float)
    mean_trace = signals.mean(axis=1, skipna=True)
    trace_std = signals.std(axis=1, skipna=True)
    volume = table[volume_col].values
    mean_fit = fit_trace('Mean', volume, mean_trace.values, config)

    purity = pd.DataFrame({r.name: r.purity for r in succeeded},
                          index=succeeded[0].fractions['fraction'].values)
    purity.index.name = 'fraction'
    mean_purity = purity.mean(axis=1, skipna=True)
    purity_std = purity.std(axis=1, skipna=True)

    # Columns of unequal length are padded with NaN
    columns = [pd.Series(volume, name='volume')]
    columns += [pd.Series(signals[s].values, name=s) for s in results.keys()]
    for s, r in results.items():
        if r.success:
            _purity = r.purity
        else:
            _purity = np.full(n_fractions, np.nan)
        columns.append(pd.Series(_purity, name=f'{s}_purity'))
    columns += [pd.Series(mean_trace.values, name='mean'),
                pd.Series(mean_purity.values, name='mean_purity'),
                pd.Series(purity_std.values, name='purity_std')]
    combined = pd.concat(columns, axis=1)
    return AggregateResult(volume, mean_trace, trace_std, mean_purity,
                           purity_std, mean_fit, combined)


class ElutionProfile:
    """
    A batch of elution traces sharing one volume axis.

    Attributes
    ----------
    df : `pandas.core.frame.DataFrame`
        A copy of the input table with one volume column and one column per
        sample.
    samples : `list`
        The sample columns.
    config : `FitConfig`
        The pipeline settings.
    results : `dict`
        The `FitResult` of each sample. Generated by `fit_samples()`.
    summary : `pandas.core.frame.DataFrame`
        The fitted parameters and resolution of each sample. Generated by
        `fit_samples()`.
    aggregate_result : `AggregateResult`
        Cross-sample statistics. Generated by `aggregate()`.
    scores : `pandas.core.frame.DataFrame`
        The fit report card. Generated by `assess_fit()`.
    """

    def __init__(self,
                 file,
                 cols={'volume': 'volume'},
                 samples=None,
                 config=None):
        """
        Parameters
        ----------
        file : `pandas.core.frame.DataFrame`
            The table of traces to analyze.
        cols : `dict`, keys of 'volume', optional
            The name of the volume column. Default is `{'volume': 'volume'}`.
        samples : `list`, optional
            The sample columns to analyze. If None, every column other than
            the volume is considered a sample.
        config : `FitConfig`, optional
            The pipeline settings. If None, defaults are used.
        """
        if (type(file) is not pd.core.frame.DataFrame):
            raise RuntimeError(
                f'Argument must be a Pandas DataFrame. Argument is of type {type(file)}')
        self.volume_col = cols['volume']
        df = file.copy()
        if samples is None:
            samples = [c for c in df.columns if c != self.volume_col]
        if len(samples) == 0:
            raise InvalidInputError('No sample columns provided.')
        _check_samples(samples)
        _validate_volume(df[self.volume_col].values)

        self.df = df
        self.samples = list(samples)
        if config is None:
            config = FitConfig()
        self.config = config

        self.results = None
        self.summary = None
        self.aggregate_result = None
        self.scores = None

    def __repr__(self):
        rep = f"""ElutionProfile ({len(self.samples)} sample(s)):"""
        if self.results is not None:
            n_failed = np.sum([not r.success for r in self.results.values()])
            rep += f'\n\t✓ {len(self.results) - n_failed} Sample(s) Fit'
            if n_failed > 0:
                rep += f'\n\t✗ {n_failed} Sample(s) Failed'
        if self.aggregate_result is not None:
            rep += f'\n\t✓ Aggregated'
        return rep

    def fit_samples(self,
                    verbose=True,
                    max_workers=1,
                    return_summary=True):
        """
        Fits the two-component mixture to every sample.

        Parameters
        ----------
        verbose : `bool`
            If True, a progress bar will be printed during fitting.
        max_workers : positive `int`
            The number of threads fitting samples concurrently.
        return_summary : `bool`
            If True, the summary DataFrame is returned.

        Returns
        -------
        summary : `pandas.core.frame.DataFrame`
            One row per sample with the fitted parameters, `resolution`,
            `reconstruction_score`, `ordered`, `status`, and `error`. Only
            returned if `return_summary == True`.
        """
        self._fitting_progress_state = int(verbose)
        self.results = fit_traces(self.df, volume_col=self.volume_col,
                                  samples=self.samples, config=self.config,
                                  verbose=verbose, max_workers=max_workers)
        self.aggregate_result = None
        self.scores = None

        rows = []
        for name, r in self.results.items():
            _dict = {'sample': name}
            for p in PARAM_ORDER:
                _dict[p] = getattr(r.params, p) if r.success else np.nan
            _dict.update({'resolution': r.resolution,
                          'reconstruction_score': r.reconstruction_score,
                          'ordered': r.ordered,
                          'status': 'fitted' if r.success else 'failed',
                          'error': r.error})
            rows.append(_dict)
        self.summary = pd.DataFrame(rows)
        if return_summary:
            return self.summary

    def aggregate(self):
        """
        Computes the cross-sample statistics and fits the mean trace. See
        `aggregate_results` for details.

        Returns
        -------
        aggregate : `AggregateResult`
            The cross-sample statistics and combined table.
        """
        if self.results is None:
            raise RuntimeError(
                'No fits found! `.fit_samples()` must be called first. Go do that.')
        self.aggregate_result = aggregate_results(self.df, self.results,
                                                  volume_col=self.volume_col,
                                                  config=self.config)
        return self.aggregate_result

    def assess_fit(self,
                   rtol=1E-2,
                   verbose=True):
        R"""
        Grades each fit (and the mean fit, if aggregated).

        Parameters
        ----------
        rtol : `float`
            The tolerated deviation of the reconstruction score from 1.
        verbose : `bool`
            If True, a report card will be printed to screen.

        Returns
        -------
        score_df : `pandas.core.frame.DataFrame`
            One row per fit with `resolution`, `reconstruction_score`,
            `ordered`, `error`, and a `status` column.

        Notes
        -----
        A fit is `valid` if the components are ordered, the resolution is a
        positive number, and the reconstruction score :math:`R` satisfies
        :math:`|R - 1| \leq` `rtol`. A converged fit failing any of these
        `needs review`. Samples which could not be fit are `failed`.
        """
        if self.results is None:
            raise RuntimeError(
                'No fits found! `.fit_samples()` must be called first. Go do that.')
        fits = list(self.results.values())
        if self.aggregate_result is not None:
            fits.append(self.aggregate_result.mean_fit)

        rows = []
        for r in fits:
            if not r.success:
                status = 'failed'
            elif r.ordered and (r.resolution > 0) and \
                    (np.abs(r.reconstruction_score - 1) <= rtol):
                status = 'valid'
            else:
                status = 'needs review'
            rows.append({'sample': r.name,
                         'resolution': r.resolution,
                         'reconstruction_score': r.reconstruction_score,
                         'ordered': r.ordered,
                         'error': r.error,
                         'applied_tolerance': rtol,
                         'status': status})
        score_df = pd.DataFrame(rows)

        print_colors = {'valid': ('A+, Success: ', ('black', 'on_green')),
                        'failed': ('F, Failed: ', ('black', 'on_red')),
                        'needs review': ('C-, Needs Review: ', ('black', 'on_yellow'))}
        self._report_card_progress_state = int(verbose)
        if verbose:
            print("""
-----------------------Mixture Fit Report Card----------------------------------
""")
            for _, d in score_df.iterrows():
                status = d['status']
                if status == 'failed':
                    message = f"Sample {d['sample']}"
                    warning = f"\n{d['error']}"
                else:
                    message = f"Sample {d['sample']} Rs = {d['resolution']:0.3f}, R-Score = {d['reconstruction_score']:0.4f}"
                    warning = ''
                    if status == 'needs review':
                        warning = """
Check the component ordering and the reconstruction. Adjusting the initial
guess or parameter bounds via `FitConfig` may help."""
                termcolor.cprint(f'{print_colors[status][0]} {message}',
                                 *print_colors[status][1], attrs=['bold'], end='')
                print(warning)
            print("""
--------------------------------------------------------------------------------""")
        self.scores = score_df
        return score_df

    def show(self,
             sample='Mean'):
        """
        Displays a trace with its fitted components and fraction purities.

        Parameters
        ----------
        sample : `str`
            The sample to show. `'Mean'` shows the mean trace and requires
            `aggregate()` to have been called.

        Returns
        -------
        fig : `matplotlib.figure.Figure`
            The matplotlib figure object.
        ax : `matplotlib.axes._axes.Axes`
            The matplotlib axis object.
        """
        if self.results is None:
            raise RuntimeError(
                'No fits found! `.fit_samples()` must be called first. Go do that.')
        if sample == 'Mean' and sample not in self.results:
            if self.aggregate_result is None:
                raise RuntimeError(
                    'No mean trace found! `.aggregate()` must be called first. Go do that.')
            result = self.aggregate_result.mean_fit
            signal = self.aggregate_result.mean_trace.values
        else:
            result = self.results[sample]
            signal = self.df[sample].values
        sns.set()

        fig, ax = plt.subplots(1, 1)
        ax.set_xlabel(self.volume_col)
        ax.set_ylabel('signal')
        ax.plot(self.df[self.volume_col].values, signal, 'k.', ms=3,
                label='observed')

        if result.success:
            self._viz_fit_displayed = True
            curve = result.curve
            ax.fill_between(curve['x'], curve['y1'], alpha=0.5,
                            label='component 1')
            ax.fill_between(curve['x'], curve['y2'], alpha=0.5,
                            label='component 2')
            ax.plot(curve['x'], curve['total'], 'r--', label='inferred mixture')

            # Fraction boundaries and purity labels
            ymax = ax.get_ylim()[1]
            bounds = curve.groupby('fraction')['x'].min().values[1:]
            ax.vlines(bounds, 0, ymax, linestyle=':', color='grey', zorder=1)
            for _, f in result.fractions[result.fractions['n_points'] > 0].iterrows():
                if np.isfinite(f['purity']):
                    ax.text(f['x_center'], f['label_y'], f"{f['purity']:0.2f}",
                            ha='center', fontsize=6)
            ax.set_title(f'{sample} (Rs = {result.resolution:0.2f})')
        else:
            self._viz_fit_displayed = False
            ax.set_title(f'{sample} (fit failed)')
        ax.legend(bbox_to_anchor=(1.5, 1))
        fig.patch.set_facecolor((0, 0, 0, 0))
        return [fig, ax]
