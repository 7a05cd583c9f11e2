##########################################################################################
#                                                                                        #
#    Contains definitions of functions used in the RHS of the ODE and the fixed          #
#    step fourth order Runge-Kutta integrator that advances the mechanism                #
#                                                                                        #
#    The reactant products are calculated with a pre-compiled Numba kernel, the          #
#    loss and gain of each species with a Scipy sparse matrix                            #
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

import collections
import logging
import numpy
import numba as nb
from timeit import default_timer as timer
import Trop_mechanism # [•] Species, presets and reaction table
import Trop_constants # [•] Rate coefficients and diurnal zenith angle

logger = logging.getLogger(__name__)

SECONDS_PER_DAY=86400.0

# Mechanism dictionaries, index arrays and loss/gain matrix. Built once on import, the
# species and reaction set is fixed
MECHANISM=Trop_mechanism.build_mechanism()

@nb.jit('float64[:](float64[:],int64[:,:])', nopython=True, cache=True)
def reactant_product(y,reactants_indices):
    # Calculate product of all reactant concentrations for each reaction [A*B etc]
    # Index -1 marks an unused slot for reactions with fewer reactants
    equations=reactants_indices.shape[0]
    reactants_conc=numpy.ones(equations)
    for equation_step in range(equations):
        for reactant_step in range(reactants_indices.shape[1]):
            index=reactants_indices[equation_step,reactant_step]
            if index >= 0:
                reactants_conc[equation_step]*=y[index]
    return reactants_conc

def clamp(y):
    # Element-wise max(0, y). Applied to every RK4 stage and to the final update
    return numpy.maximum(y,0.0)

def emission_source(emissions,mechanism=MECHANISM):

    # Constant source for the emitted species, converted from ppb/day to ppb/s.
    # Added regardless of the current concentration
    source=numpy.zeros((mechanism['num_species']),)
    for species, species_step in zip(Trop_mechanism.EMITTED_SPECIES,mechanism['emission_indices']):
        source[species_step]=emissions.get(species,0.0)/SECONDS_PER_DAY
    return source

def chemistry_rates(y,temp,pressure,sza,mechanism=MECHANISM):

    # Rate of every active reaction [ppb/s]: rate coefficient * product of reactants
    y_asnumpy=numpy.asarray(y,dtype=numpy.float64)
    rates=Trop_constants.evaluate_rates(mechanism['reaction_names'],temp,pressure,sza)
    reactants=reactant_product(y_asnumpy,mechanism['reactants_indices'])
    return numpy.multiply(reactants,rates)

def dydt_func(y,temp,pressure,sza,emissions,mechanism=MECHANISM):

    """ Instantaneous rate of change of every species [ppb/s]

    inputs:
    • y - concentrations [ppb] in species declaration order. Not required to be clamped
    • temp - temperature [K]
    • pressure - pressure [hPa]
    • sza - solar zenith angle [degrees]
    • emissions - dictionary of emission rates [ppb/day] for CH4 and CO
    outputs:
    • dydt - numpy array of derivatives, chemistry plus emission source
    """

    reactants=chemistry_rates(y,temp,pressure,sza,mechanism)
    # Now use reaction rates with the loss_gain matrix to calculate the final dydt for each compound
    dydt=mechanism['loss_gain'] @ reactants
    return dydt+emission_source(emissions,mechanism)

def rk4_step(y,dt,temp,pressure,sza,emissions,mechanism=MECHANISM):

    """ Advance the concentration array by one classic fourth order Runge-Kutta step

    The environment is held constant over the four stages. Each intermediate state and
    the result are clamped at zero, this is the only stability safeguard: there is no
    error estimate or step size control, so dt must stay within the explicit limit.
    """

    y_asnumpy=numpy.asarray(y,dtype=numpy.float64)

    k1=dydt_func(y_asnumpy,temp,pressure,sza,emissions,mechanism)
    k2=dydt_func(clamp(y_asnumpy+0.5*dt*k1),temp,pressure,sza,emissions,mechanism)
    k3=dydt_func(clamp(y_asnumpy+0.5*dt*k2),temp,pressure,sza,emissions,mechanism)
    k4=dydt_func(clamp(y_asnumpy+dt*k3),temp,pressure,sza,emissions,mechanism)

    return clamp(y_asnumpy+dt/6.0*(k1+2.0*k2+2.0*k3+k4))

def derivative(concentrations,temp,pressure,sza,emissions):
    # Mapping version of dydt_func, species -> ppb/s
    y=Trop_mechanism.concentrations_to_array(concentrations)
    return Trop_mechanism.array_to_concentrations(dydt_func(y,temp,pressure,sza,emissions))

def reaction_rates(concentrations,temp,pressure,sza):
    # Rate of each active reaction [ppb/s], keyed by reaction name
    y=Trop_mechanism.concentrations_to_array(concentrations)
    reactants=chemistry_rates(y,temp,pressure,sza)
    return collections.OrderedDict(zip(MECHANISM['reaction_names'],reactants.tolist()))

def step_one(concentrations,dt,temp,pressure,sza,emissions):
    # Mapping version of rk4_step. The input mapping is not modified
    y=Trop_mechanism.concentrations_to_array(concentrations)
    return Trop_mechanism.array_to_concentrations(rk4_step(y,dt,temp,pressure,sza,emissions))

def run_simulation(filename, save_output, start_time, env, preset, simulation_time, batch_step):

    """ Headless batch run of the mechanism

    inputs:
    • filename - prefix for the saved .npy output
    • save_output - save the time and concentration arrays to disk
    • start_time - seconds after local midnight at t=0, used for the diurnal zenith angle
    • env - environment dictionary, see Environment.default_environment
    • preset - name of the initial concentration preset
    • simulation_time - total simulated time [s]
    • batch_step - simulated time between stored outputs [s]
    outputs:
    • t_array - time at the end of each batch [s]
    • y_matrix - concentrations [ppb] at the end of each batch, one row per batch

    Each batch holds a whole number of env['dt'] steps. When batch_step is not a
    multiple of dt the batch is shortened to floor(batch_step/dt)*dt seconds, so the
    times in t_array are multiples of that and the run ends before simulation_time.
    """

    dt=env['dt']
    # Take multiple small steps in each batch. A single large step would pass the stability
    # limit of the explicit method
    steps_per_batch=max(1,int(batch_step//dt))
    number_steps=int(simulation_time/batch_step)
    if steps_per_batch*dt!=batch_step:
        logger.warning("batch_step %.1f s is not a multiple of dt %.1f s, each batch covers %.1f s",
                       batch_step, dt, steps_per_batch*dt)

    y=Trop_mechanism.concentrations_to_array(Trop_mechanism.initial_concentrations(preset))
    if env['diurnal']:
        sza=Trop_constants.zenith(start_time)
    else:
        sza=env['sza']

    # Define a matrix that stores values as outputs from the end of each batch step
    y_matrix=numpy.zeros((number_steps,len(y)))
    t_array=numpy.zeros((number_steps),)
    total_time=0.0

    logger.info("Starting simulation: %d batches of %d steps, dt=%.1f s", number_steps, steps_per_batch, dt)
    start=timer()

    for time_step in range(number_steps):
        for step in range(steps_per_batch):
            y=rk4_step(y,dt,env['temp'],env['pressure'],sza,env['emissions'])
            total_time+=dt
            if env['diurnal']:
                sza=Trop_constants.zenith(start_time+total_time)
        t_array[time_step]=total_time
        y_matrix[time_step,:]=y

    logger.info("Simulation finished in %.3f s wall time", timer()-start)

    # Do you want to save the generated matrix of outputs?
    if save_output:
        numpy.save(filename+'_output', y_matrix)
        numpy.save(filename+'_time', t_array)
        logger.info("Saved output to %s_output.npy and %s_time.npy", filename, filename)

    return t_array, y_matrix
