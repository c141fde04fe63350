import numpy as np
import pandas as pd


def _find_header(fname, colnames):
    """
    Returns the index of the line naming every column, skipping any metadata 
    lines written by the instrument before the table.
    """
    with open(fname, 'r') as f:
        matches = [i for i, line in enumerate(f.readlines())
                   if np.array([nom.lower() in line.lower() for nom in colnames]).all()]
    if len(matches) == 0:
        raise ValueError(
            "Provided column name(s) were not found in file. Check spelling?")
    if len(matches) > 1:
        raise RuntimeError(
            "Provided file has more than one table of traces. This is not yet supported.")
    return matches[0]


def load_traces(fname, cols, delimiter=',', dropna=False):
    R"""
    Parses a file containing a table of elution traces and returns it as a 
    Pandas DataFrame.

    Parameters 
    -----------
    fname: `str`
        The path to the file containing the traces. This must be a text
        file (i.e. not `.xslx`!) 
    cols : `list` or `dict`
        The volume column followed by the sample columns. If provided as a 
        dict, columns will be renamed as `key` -> `value`.
    delimiter : 'str' 
        The delimiter character separating columns in the table.
    dropna: `bool`
        If True, rows with unmeasured samples will be dropped. Otherwise 
        empty cells are kept as NaN and ignored when fitting.

    Returns
    -------
    df : `pandas.core.frame.DataFrame`
        The traces with the desired columns as floats.
    """
    if type(cols) == dict:
        _colnames = list(cols.keys())
    else:
        _colnames = list(cols)
    if len(_colnames) < 2:
        raise ValueError(
            "At least a volume column and one sample column must be provided.")

    skip = _find_header(fname, _colnames)
    df = pd.read_csv(fname, skiprows=skip, delimiter=delimiter)
    if type(cols) == dict:
        df.rename(columns=cols, inplace=True)
        _colnames = list(cols.values())
    df = df[_colnames].astype(float)
    if dropna:
        df.dropna(inplace=True)
        df.reset_index(drop=True, inplace=True)
    return df


def save_table(aggregate, fname, delimiter=','):
    """
    Writes the combined table of an aggregate result (or any DataFrame) to a 
    text file. Undefined quantities are written as empty cells.
    """
    if type(aggregate) is pd.core.frame.DataFrame:
        table = aggregate
    else:
        table = aggregate.table
    table.to_csv(fname, sep=delimiter, index=False)
