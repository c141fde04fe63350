# %%
import numpy as np
import pandas as pd
import purity.io
import purity.quant


def test_load_traces():
    """
    Tests that trace loading skips instrument metadata, keeps only the 
    requested columns, and handles only one table at a time.
    """
    bad_cols = ['volume', '1_elpmas']
    columns_list = ['volume', 'sample_1', 'sample_2']
    columns_dict = {'volume': 'ml', 'sample_1': 's1', 'sample_2': 's2'}

    # Ensure that loading aborts if not all provided column names are found
    try:
        df = purity.io.load_traces('./tests/test_data/valid_traces.txt',
                                   bad_cols)
        assert False
    except ValueError:
        assert True

    # A volume column alone is not a table of traces
    try:
        df = purity.io.load_traces('./tests/test_data/valid_traces.txt',
                                   ['volume'])
        assert False
    except ValueError:
        assert True

    # Ensure that invalid tables are rejected
    try:
        df = purity.io.load_traces(
            './tests/test_data/invalid_traces1.txt', columns_list)
        assert False
    except RuntimeError:
        assert True
    try:
        df = purity.io.load_traces(
            './tests/test_data/invalid_traces2.txt', columns_list)
        assert False
    except ValueError:
        assert True

    # Load a valid table and ensure that only provided columns are kept
    df = purity.io.load_traces(
        './tests/test_data/valid_traces.txt', columns_list)
    assert list(df.columns) == columns_list
    assert 'comment' not in df.keys()
    assert len(df) == 6
    assert df['volume'].values[0] == 0.1

    # Unmeasured cells are kept unless dropped
    assert df.isnull().any().any()
    df = purity.io.load_traces(
        './tests/test_data/valid_traces.txt', columns_list, dropna=True)
    assert not df.isnull().any().any()
    assert len(df) == 5
    assert (df.index.values == np.arange(5)).all()

    # Ensure that columns are renamed if a dictionary is provided
    df = purity.io.load_traces(
        './tests/test_data/valid_traces.txt', columns_dict)
    assert list(df.columns) == list(columns_dict.values())


def test_save_table(tmp_path):
    """
    Tests that the combined table is written column for column, with 
    undefined quantities as empty cells.
    """
    table = pd.DataFrame({'volume': [0.1, 0.2, 0.3],
                          'sample_1_purity': [0.9, np.nan, np.nan]})
    fname = tmp_path / 'table.csv'
    purity.io.save_table(table, fname)
    loaded = pd.read_csv(fname)
    assert list(loaded.columns) == ['volume', 'sample_1_purity']
    assert loaded['sample_1_purity'].isnull().sum() == 2

    # An aggregate result writes its table
    aggregate = purity.quant.AggregateResult(None, None, None, None, None,
                                             None, table)
    fname = tmp_path / 'aggregate.tsv'
    purity.io.save_table(aggregate, fname, delimiter='\t')
    loaded = pd.read_csv(fname, delimiter='\t')
    assert np.isclose(loaded['volume'].values, table['volume'].values).all()
