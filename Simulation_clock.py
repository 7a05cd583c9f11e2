##########################################################################################
#                                                                                        #
#    Simulation clock. Converts elapsed wall clock time into a sequence of fixed         #
#    RK4 steps, drives the diurnal zenith angle and keeps a downsampled time             #
#    series of the concentrations                                                        #
#                                                                                        #
#                                                                                        #
#    Copyright (C) 2018  David Topping : david.topping@manchester.ac.uk                  #
#                                      : davetopp80@gmail.com                            #
#    Personal website: davetoppingsci.com                                                #
#                                                                                        #
#    All Rights Reserved.                                                                #
#    This file is part of TropBox.                                                       #
#                                                                                        #
#    TropBox is free software: you can redistribute it and/or modify it under            #
#    the terms of the GNU General Public License as published by the Free Software       #
#    Foundation, either version 3 of the License, or (at your option) any later          #
#    version.                                                                            #
#                                                                                        #
#    TropBox is distributed in the hope that it will be useful, but WITHOUT              #
#    ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS       #
#    FOR A PARTICULAR PURPOSE.  See the GNU General Public License for more              #
#    details.                                                                            #
#                                                                                        #
#    You should have received a copy of the GNU General Public License along with        #
#    TropBox.  If not, see <http://www.gnu.org/licenses/>.                               #
#                                                                                        #
##########################################################################################

# The clock has no event loop of its own. A host calls tick() periodically with the
# current wall clock time, and all state changes happen inside that call or in the
# explicit start/pause/reset/preset commands. Nothing here is thread safe: a host that
# ticks from a background thread must serialise access to the clock itself.

import collections
import io
import logging
import numpy
from timeit import default_timer as timer
import Trop_mechanism # [•] Species registry and presets
import Trop_constants # [•] Diurnal zenith angle
import ODE_solver # [•] RK4 integrator
import Environment # [•] Ambient conditions and run settings

logger = logging.getLogger(__name__)

STOPPED='Stopped'
RUNNING='Running'

# Store one sample every SAMPLE_STRIDE integration steps
SAMPLE_STRIDE=10

class TimeSeries(object):

    """ Append-only record of (simulated time, concentrations) samples """

    def __init__(self):
        self.t_array=[]
        self.y_list=[]

    def __len__(self):
        return len(self.t_array)

    def append(self, time, y):
        if self.t_array:
            assert time >= self.t_array[-1], "samples must be appended in time order"
        self.t_array.append(float(time))
        self.y_list.append(numpy.array(y,dtype=numpy.float64))

    def clear(self):
        self.t_array=[]
        self.y_list=[]

    def last_time(self):
        return self.t_array[-1] if self.t_array else None

    def should_sample(self, time, dt):
        # Always take the first sample, then one per SAMPLE_STRIDE steps of size dt
        last_time=self.last_time()
        if last_time is None:
            return True
        return time-last_time >= dt*SAMPLE_STRIDE

    def as_arrays(self):
        # Times [s] and a matrix of concentrations [ppb], one row per sample
        t_array=numpy.array(self.t_array,dtype=numpy.float64)
        if self.y_list:
            y_matrix=numpy.vstack(self.y_list)
        else:
            y_matrix=numpy.zeros((0,len(Trop_mechanism.SPECIES)))
        return t_array, y_matrix

    def samples(self):
        return [(time, Trop_mechanism.array_to_concentrations(y)) for time, y in zip(self.t_array, self.y_list)]

    def to_csv(self):

        """ Comma separated text of the buffer

        One row per sample: time in hours, then the concentration of each species [ppb]
        in declaration order. The buffer is not modified.
        """

        header='Time(hours),'+','.join('%s(ppb)' % species_info['name'] for species_info in Trop_mechanism.SPECIES.values())
        t_array, y_matrix = self.as_arrays()
        output=io.StringIO()
        if len(t_array)==0:
            output.write(header+'\n')
            return output.getvalue()
        table=numpy.column_stack((t_array/3600.0,y_matrix))
        fmt=['%.4f']+['%.6f']*y_matrix.shape[1]
        numpy.savetxt(output,table,fmt=fmt,delimiter=',',header=header,comments='')
        return output.getvalue()

    def save(self, filename):
        # Save the buffer as a .npz archive for later analysis
        t_array, y_matrix = self.as_arrays()
        numpy.savez(filename,time=t_array,concentrations=y_matrix,species=numpy.array(list(Trop_mechanism.SPECIES.keys())))

def initial_state(preset='background'):
    # Simulation context at t=0
    sim_state=dict()
    sim_state['concentrations']=Trop_mechanism.initial_concentrations(preset)
    sim_state['time']=0.0
    sim_state['sza']=0.0
    return sim_state

def step_simulation(sim_state, env, dt):

    """ Advance a simulation context by one step of dt seconds

    inputs:
    • sim_state - dictionary with 'concentrations', 'time' [s] and 'sza' [degrees]
    • env - environment dictionary
    • dt - step size [s]
    outputs:
    • new_state - a new dictionary, sim_state is left untouched

    With the diurnal cycle on, the step uses the zenith angle derived at the end of the
    previous step. Otherwise the configured angle is used directly.
    """

    if env['diurnal']:
        sza=sim_state['sza']
    else:
        sza=env['sza']

    new_state=dict()
    new_state['concentrations']=ODE_solver.step_one(sim_state['concentrations'],dt,env['temp'],env['pressure'],sza,env['emissions'])
    new_state['time']=sim_state['time']+dt
    if env['diurnal']:
        new_state['sza']=Trop_constants.zenith(new_state['time'])
    else:
        new_state['sza']=env['sza']
    return new_state

class SimulationClock(object):

    """ Stopped/Running state machine driving the simulation from wall clock time

    Each tick converts the wall clock time elapsed since the previous tick, scaled by
    env['speed'], into a whole number of dt steps (at least one). Steps are always
    applied one after another in time order, never merged into one large step.
    """

    def __init__(self, env=None, preset='background'):
        if env is None:
            env=Environment.default_environment()
        self.env=env
        self.sim_state=initial_state(preset)
        self.time_series=TimeSeries()
        self.state=STOPPED
        self.last_update_time=None

    @property
    def is_running(self):
        return self.state==RUNNING

    @property
    def concentrations(self):
        return collections.OrderedDict(self.sim_state['concentrations'])

    @property
    def time(self):
        return self.sim_state['time']

    @property
    def sza(self):
        return self.sim_state['sza']

    def start(self, now=None):
        if self.state==RUNNING:
            return
        if now is None:
            now=timer()
        self.state=RUNNING
        self.last_update_time=now

    def pause(self):
        self.state=STOPPED

    def tick(self, now=None):

        # Returns the number of steps taken
        if self.state!=RUNNING:
            logger.debug("tick ignored, clock is %s", self.state)
            return 0
        if now is None:
            now=timer()
        dt=self.env['dt']
        elapsed=(now-self.last_update_time)*self.env['speed']
        self.last_update_time=now

        # Always make progress, even when ticks arrive faster than dt of simulated time
        num_steps=max(1,int(elapsed//dt))
        for step in range(num_steps):
            self.step(dt)
        return num_steps

    def step(self, dt=None):
        if dt is None:
            dt=self.env['dt']
        self.sim_state=step_simulation(self.sim_state,self.env,dt)
        if self.time_series.should_sample(self.sim_state['time'],dt):
            y=Trop_mechanism.concentrations_to_array(self.sim_state['concentrations'])
            self.time_series.append(self.sim_state['time'],y)

    def reset(self, preset='background'):
        self.pause()
        self.sim_state=initial_state(preset)
        self.time_series.clear()
        self.last_update_time=None

    def load_preset(self, preset):
        # Replaces the concentrations only, time and history carry on
        sim_state=dict(self.sim_state)
        sim_state['concentrations']=Trop_mechanism.initial_concentrations(preset)
        self.sim_state=sim_state

    def set_parameter(self, name, value):
        # Switching the diurnal cycle off holds the last derived angle
        if name=='diurnal' and not value and self.env['diurnal']:
            self.env['sza']=self.sim_state['sza']
        Environment.set_parameter(self.env,name,value)

    def set_nox_level(self, nox_level):
        Environment.set_parameter(self.env,'nox_level',nox_level)
        concentrations=collections.OrderedDict(self.sim_state['concentrations'])
        concentrations.update(Environment.nox_partition(self.env['nox_level']))
        sim_state=dict(self.sim_state)
        sim_state['concentrations']=concentrations
        self.sim_state=sim_state

    def snapshot(self):
        # Read-only view of the current state for a display layer
        hours=self.sim_state['time']/3600.0
        snapshot=dict()
        snapshot['time']=self.sim_state['time']
        snapshot['hours']=hours
        snapshot['local_hour']=hours%24.0
        snapshot['sza']=self.sim_state['sza']
        snapshot['daytime']=self.sim_state['sza'] < 90.0
        snapshot['state']=self.state
        snapshot['concentrations']=collections.OrderedDict(self.sim_state['concentrations'])
        snapshot['environment']=Environment.snapshot(self.env)
        snapshot['samples']=len(self.time_series)
        return snapshot
