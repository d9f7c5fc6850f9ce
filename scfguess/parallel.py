"""
Process groups and collective reductions.

The initial-guess routines only ever need a scalar sum over a process
group. Communicators expose the small interface used here:

    comm.rank, comm.size, comm.sum(value), comm.abort(code)

A group that a process does not belong to is represented by ``None``
(the equivalent of ``MPI_COMM_NULL``); routines that need such a group
return immediately on that process.
"""

from dataclasses import dataclass, fields


class SerialCommunicator:
    """
    Communicator for a single process.

    Collective operations are identities.
    """

    rank = 0
    size = 1

    def sum(self, value):
        return value

    def abort(self, code=1):
        raise SystemExit(code)

    def __repr__(self):
        return "SerialCommunicator()"


class MPICommunicator:
    """
    Adapter around an mpi4py communicator.

    Args:
        comm: mpi4py communicator (defaults to ``MPI.COMM_WORLD``)
    """

    def __init__(self, comm=None):
        from mpi4py import MPI

        self._mpi = MPI
        self.comm = MPI.COMM_WORLD if comm is None else comm
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()

    def sum(self, value):
        """All-reduce sum of a scalar over the group."""
        return self.comm.allreduce(value, op=self._mpi.SUM)

    def abort(self, code=1):
        self.comm.Abort(code)

    def __repr__(self):
        return f"MPICommunicator(rank={self.rank}, size={self.size})"


serial_comm = SerialCommunicator()


def reduce_sum(value, comm):
    """
    Sum a scalar over a process group.

    This is a true collective: every member of ``comm`` must call it
    exactly once per reduction point.

    Args:
        value: Local contribution
        comm: Communicator of the group

    Returns:
        Group total, identical on every member
    """
    return comm.sum(value)


@dataclass
class ProcessGroups:
    """
    Nested process groups of a distributed calculation.

    Attributes:
        phi: Domain group holding the density (``dmcomm_phi``)
        psi: Domain group holding orbitals (``dmcomm``)
        spin: Spin group
        kpt: K-point group
        band: Band group
    """

    phi: object = None
    psi: object = None
    spin: object = None
    kpt: object = None
    band: object = None

    @classmethod
    def serial(cls):
        """All groups consist of this single process."""
        return cls(phi=serial_comm, psi=serial_comm, spin=serial_comm,
                   kpt=serial_comm, band=serial_comm)

    def is_member(self, name):
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"Unknown process group: {name}")
        return getattr(self, name) is not None


def block_partition(n, nparts, index):
    """
    Balanced contiguous split of ``n`` items over ``nparts`` owners.

    The first ``n % nparts`` owners receive one extra item.

    Args:
        n: Number of items
        nparts: Number of owners
        index: Owner index (0-based)

    Returns:
        count: Number of items owned
        start: Global index of the first owned item
    """
    if nparts < 1:
        raise ValueError(f"nparts must be positive, got {nparts}")
    if not 0 <= index < nparts:
        raise ValueError(f"index {index} out of range for {nparts} parts")

    base, extra = divmod(n, nparts)
    count = base + (1 if index < extra else 0)
    start = index * base + min(index, extra)
    return count, start
