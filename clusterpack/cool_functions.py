import numpy as np
import scipy.sparse as sp


def cool_max(arr, partition, n_classes=None):
    """Efficiently calculate the max of all elements of an array arr of **non-negative** reals over a partition u.
    The number of classes in the partition is implicitly defined from the values of u, unless it is explicitly given
    with n_classes. Classes without any member get the value 0.

    Parameters
    ----------
        arr: Array of dimensions (n, ).
        partition: Partition of the data points in the form of an (n, ) array with k different integer values.
        n_classes: Optional number of classes, needed when the last classes of the partition are empty.

    Returns
    -------
        group_max: A (k, ) array with the values maximized over the k partition values.
    """
    arr = np.asarray(arr, float)
    partition = np.asarray(partition, int)
    s = arr.size
    if n_classes is None:
        n_classes = int(np.max(partition)) + 1 if s else 0
    if n_classes == 0:
        return np.zeros(0, float)
    if s == 0:
        return np.zeros(n_classes, float)
    umat = sp.csr_matrix((arr, (partition, np.arange(0, s))), shape=(n_classes, s))
    result = umat.max(axis=-1)
    return np.asarray(result.toarray()).reshape(n_classes)


def cool_max_abs_extent(data, partition, mask=None, n_classes=None):
    """Calculate the largest absolute coordinate of the rows of a matrix data over a partition u, i.e. the half side
    of the smallest origin-centered square which contains every member of a class.

    Parameters
    ----------
        data: Matrix of dimensions (n, f) with n points of f coordinates each.

        partition: Partition of the data points in the form of an (n, ) array with k different integer values.

        mask: Optional boolean (n, ) array. Only the selected rows contribute to the maximum.

        n_classes: Optional number of classes, needed when some classes have no (selected) member.

    Returns
    -------
        group_extent: A (k, ) array with the maximum absolute coordinates over the k partition values.
    """
    data = np.asarray(data, float).reshape(-1, 2) if np.size(data) == 0 else np.asarray(data, float)
    partition = np.asarray(partition, int)
    if n_classes is None:
        n_classes = int(np.max(partition)) + 1 if partition.size else 0

    extents = np.max(np.abs(data), axis=1) if len(data) else np.zeros(0, float)
    if mask is not None:
        mask = np.asarray(mask, bool)
        extents, partition = extents[mask], partition[mask]

    return cool_max(extents, partition, n_classes=n_classes)
